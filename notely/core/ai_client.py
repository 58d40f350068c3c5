"""Text-completion client with ordered model fallback.

The client is built per request from the caller's own provider credential and
handed to route handlers through the ``get_ai_client`` dependency, so tests
substitute a stub with ``app.dependency_overrides`` instead of patching module
globals.
"""

from collections.abc import AsyncIterator

from fastapi import Depends

from notely.core.auth_middleware import AuthContext, require_auth
from notely.core.config import Settings, get_settings
from notely.core.credential_crypto import CredentialDecryptionError, decrypt_api_key
from notely.core.logging import get_logger
from notely.db.users import get_encrypted_api_key

logger = get_logger(__name__)

PROBE_SYSTEM_PROMPT = "Reply with the single word OK."
PROBE_PROMPT = "ping"

# HTTP statuses worth retrying on the next candidate model
_RETRYABLE_STATUS = {404, 408, 409, 429}


class AIProviderError(Exception):
    """A provider call failed."""

    def __init__(self, message: str, retryable: bool = False, status_code: int | None = None):
        super().__init__(message)
        self.retryable = retryable
        self.status_code = status_code

    @property
    def is_auth_error(self) -> bool:
        return self.status_code in (401, 403)


class ModelsExhaustedError(AIProviderError):
    """Every candidate model failed."""

    def __init__(self, failures: list[tuple[str, AIProviderError]]):
        self.failures = failures
        detail = "; ".join(f"{model}: {error}" for model, error in failures) or "no models configured"
        super().__init__(f"All AI models exhausted ({detail})", retryable=False)

    @property
    def is_auth_error(self) -> bool:
        return any(error.is_auth_error for _, error in self.failures)


class APIKeyRequiredError(Exception):
    """The user has no provider credential configured."""

    code = "API_KEY_REQUIRED"

    def __init__(self):
        super().__init__(self.code)


def _is_retryable_status(status_code: int | None) -> bool:
    if status_code is None:
        return True
    return status_code in _RETRYABLE_STATUS or status_code >= 500


# ============================================================================
# Providers
# ============================================================================


class CompletionProvider:
    """Opaque text-completion service."""

    name = "base"

    async def complete(self, model: str, system: str, prompt: str, max_tokens: int) -> str:
        raise NotImplementedError

    def stream(self, model: str, system: str, prompt: str, max_tokens: int) -> AsyncIterator[str]:
        raise NotImplementedError


class AnthropicCompletionProvider(CompletionProvider):
    """Anthropic Messages API provider."""

    name = "anthropic"

    def __init__(self, api_key: str, temperature: float = 0.3):
        from anthropic import AsyncAnthropic

        self._client = AsyncAnthropic(api_key=api_key)
        self.temperature = temperature

    @staticmethod
    def _wrap(error: Exception) -> AIProviderError:
        from anthropic import APIConnectionError, APIStatusError

        if isinstance(error, APIStatusError):
            return AIProviderError(
                str(error),
                retryable=_is_retryable_status(error.status_code),
                status_code=error.status_code,
            )
        if isinstance(error, APIConnectionError):
            # Includes APITimeoutError
            return AIProviderError(str(error), retryable=True)
        return AIProviderError(str(error), retryable=False)

    async def complete(self, model: str, system: str, prompt: str, max_tokens: int) -> str:
        from anthropic import APIError

        try:
            response = await self._client.messages.create(
                model=model,
                max_tokens=max_tokens,
                system=system,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
            )
        except APIError as e:
            raise self._wrap(e) from e

        return "".join(block.text for block in response.content if block.type == "text")

    async def stream(self, model: str, system: str, prompt: str, max_tokens: int) -> AsyncIterator[str]:
        from anthropic import APIError

        try:
            async with self._client.messages.stream(
                model=model,
                max_tokens=max_tokens,
                system=system,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
            ) as stream:
                async for text in stream.text_stream:
                    if text:
                        yield text
        except APIError as e:
            raise self._wrap(e) from e


class OpenAICompletionProvider(CompletionProvider):
    """OpenAI Chat Completions provider."""

    name = "openai"

    def __init__(self, api_key: str, temperature: float = 0.3):
        from openai import AsyncOpenAI

        self._client = AsyncOpenAI(api_key=api_key)
        self.temperature = temperature

    @staticmethod
    def _wrap(error: Exception) -> AIProviderError:
        from openai import APIConnectionError, APIStatusError

        if isinstance(error, APIStatusError):
            return AIProviderError(
                str(error),
                retryable=_is_retryable_status(error.status_code),
                status_code=error.status_code,
            )
        if isinstance(error, APIConnectionError):
            return AIProviderError(str(error), retryable=True)
        return AIProviderError(str(error), retryable=False)

    def _messages(self, system: str, prompt: str) -> list[dict]:
        return [
            {"role": "system", "content": system},
            {"role": "user", "content": prompt},
        ]

    async def complete(self, model: str, system: str, prompt: str, max_tokens: int) -> str:
        from openai import OpenAIError

        try:
            response = await self._client.chat.completions.create(
                model=model,
                messages=self._messages(system, prompt),
                max_completion_tokens=max_tokens,
                temperature=self.temperature,
            )
        except OpenAIError as e:
            raise self._wrap(e) from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def stream(self, model: str, system: str, prompt: str, max_tokens: int) -> AsyncIterator[str]:
        from openai import OpenAIError

        try:
            stream = await self._client.chat.completions.create(
                model=model,
                messages=self._messages(system, prompt),
                max_completion_tokens=max_tokens,
                temperature=self.temperature,
                stream=True,
            )
            async for chunk in stream:
                if not chunk.choices:
                    continue
                text = chunk.choices[0].delta.content
                if text:
                    yield text
        except OpenAIError as e:
            raise self._wrap(e) from e


# ============================================================================
# Fallback client
# ============================================================================


class ModelFallbackClient:
    """Runs completions against an ordered list of candidate models.

    Order matters: cheaper and faster models come first and are always tried
    before more capable ones.
    """

    def __init__(
        self,
        provider: CompletionProvider,
        models: list[str],
        max_tokens: int = 4096,
        probe_max_tokens: int = 1,
    ):
        self.provider = provider
        self.models = list(models)
        self.max_tokens = max_tokens
        self.probe_max_tokens = probe_max_tokens

    async def select_model(self) -> str:
        """Probe candidates in order and return the first that responds.

        Raises:
            ModelsExhaustedError: If no candidate responds
        """
        failures: list[tuple[str, AIProviderError]] = []
        for model in self.models:
            try:
                await self.provider.complete(
                    model, PROBE_SYSTEM_PROMPT, PROBE_PROMPT, self.probe_max_tokens
                )
            except AIProviderError as e:
                logger.warning(f"Model {model} failed capability probe: {e}")
                failures.append((model, e))
                continue
            logger.debug(f"Selected model {model} ({self.provider.name})")
            return model
        raise ModelsExhaustedError(failures)

    async def complete(self, system: str, prompt: str) -> str:
        """Generate text, advancing to the next model on retryable failures.

        Raises:
            AIProviderError: Non-retryable failure from a candidate
            ModelsExhaustedError: If every candidate failed with a retryable error
        """
        failures: list[tuple[str, AIProviderError]] = []
        for model in self.models:
            try:
                text = await self.provider.complete(model, system, prompt, self.max_tokens)
            except AIProviderError as e:
                if not e.retryable:
                    raise
                logger.warning(f"Model {model} unavailable, trying next: {e}")
                failures.append((model, e))
                continue
            logger.info(f"Completion served by {model}")
            return text
        raise ModelsExhaustedError(failures)

    async def stream(self, system: str, prompt: str, model: str) -> AsyncIterator[str]:
        """Stream text deltas from an already selected model."""
        async for text in self.provider.stream(model, system, prompt, self.max_tokens):
            yield text


def build_ai_client(api_key: str, settings: Settings) -> ModelFallbackClient:
    """Construct the configured provider wrapped in the fallback loop."""
    if settings.AI_PROVIDER == "openai":
        provider: CompletionProvider = OpenAICompletionProvider(api_key, settings.AI_TEMPERATURE)
        models = settings.OPENAI_MODELS
    else:
        provider = AnthropicCompletionProvider(api_key, settings.AI_TEMPERATURE)
        models = settings.AI_MODELS

    return ModelFallbackClient(
        provider,
        models,
        max_tokens=settings.AI_MAX_TOKENS,
        probe_max_tokens=settings.AI_PROBE_MAX_TOKENS,
    )


async def get_ai_client(
    auth: AuthContext = Depends(require_auth),
    settings: Settings = Depends(get_settings),
) -> ModelFallbackClient:
    """FastAPI dependency: AI client bound to the caller's own credential.

    Raises:
        APIKeyRequiredError: If the user has no usable provider key stored
    """
    encrypted = get_encrypted_api_key(auth.user_id)
    if not encrypted:
        raise APIKeyRequiredError()
    try:
        api_key = decrypt_api_key(encrypted, settings)
    except CredentialDecryptionError:
        logger.error(f"Stored API key for user {auth.user_id} could not be decrypted")
        raise APIKeyRequiredError()
    return build_ai_client(api_key, settings)


def _server_api_key(settings: Settings) -> str | None:
    if settings.AI_PROVIDER == "openai":
        return settings.OPENAI_API_KEY
    return settings.ANTHROPIC_API_KEY


async def get_ai_client_with_server_fallback(
    auth: AuthContext = Depends(require_auth),
    settings: Settings = Depends(get_settings),
) -> ModelFallbackClient:
    """FastAPI dependency: the caller's client, else one bound to the server key."""
    try:
        return await get_ai_client(auth, settings)
    except APIKeyRequiredError:
        server_key = _server_api_key(settings)
        if not server_key:
            raise
        logger.debug(f"User {auth.user_id} has no API key, using server key")
        return build_ai_client(server_key, settings)
