"""Per-section multi-language variant cache.

A section keeps its authoritative English ``source`` plus lazily filled
renderings (Hindi, and Hinglish per tone). Selecting a language returns the
cached rendering or performs exactly one transform call and caches the result.

Sections are immutable values: every operation returns a new ``Section`` and a
failed call leaves the input untouched.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Hashable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Protocol

from notely.core.logging import get_logger
from notely.core.schemas_sections import DetectedSection, HinglishTone, Language, LanguageVariant

logger = get_logger(__name__)

REGENERATE_KEY = "regenerate"

EDITABLE_FIELDS = frozenset({"title", "summary", "bullets"})


class VariantTransformer(Protocol):
    """Remote transform service (``NotelyClient`` satisfies this)."""

    async def transform_section(
        self,
        section: LanguageVariant,
        target: Language,
        tone: HinglishTone | None = None,
    ) -> LanguageVariant: ...

    async def regenerate_section(self, section: LanguageVariant, transcript: str) -> LanguageVariant: ...


def variant_key(language: Language, tone: HinglishTone | None = None) -> str:
    """Cache key: ``english``, ``hindi`` or ``hinglish.<tone>``."""
    if language == Language.HINGLISH:
        return f"hinglish.{(tone or HinglishTone.NEUTRAL).value}"
    return language.value


@dataclass(frozen=True)
class SectionVariants:
    english: LanguageVariant
    hindi: LanguageVariant | None = None
    hinglish: Mapping[HinglishTone, LanguageVariant] = field(default_factory=dict)

    def get(self, language: Language, tone: HinglishTone | None = None) -> LanguageVariant | None:
        if language == Language.ENGLISH:
            return self.english
        if language == Language.HINDI:
            return self.hindi
        return self.hinglish.get(tone or HinglishTone.NEUTRAL)

    def with_entry(
        self,
        language: Language,
        variant: LanguageVariant,
        tone: HinglishTone | None = None,
    ) -> SectionVariants:
        """Copy with one entry set; other entries are shared."""
        if language == Language.ENGLISH:
            return replace(self, english=variant)
        if language == Language.HINDI:
            return replace(self, hindi=variant)
        return replace(self, hinglish={**self.hinglish, tone or HinglishTone.NEUTRAL: variant})


@dataclass(frozen=True)
class Section:
    """A note section with its language renderings.

    ``current`` is always an entry reachable from ``variants`` for
    (``language``, ``hinglish_tone``). ``hinglish_tone`` remembers the last
    Hinglish tone even while another language is shown.
    """

    id: str
    source: LanguageVariant
    variants: SectionVariants
    current: LanguageVariant
    language: Language = Language.ENGLISH
    hinglish_tone: HinglishTone | None = None
    start_time: float | None = None
    end_time: float | None = None

    @classmethod
    def new(
        cls,
        section_id: str,
        source: LanguageVariant,
        start_time: float | None = None,
        end_time: float | None = None,
    ) -> Section:
        """Seed a section whose only rendering is its English source."""
        return cls(
            id=section_id,
            source=source,
            variants=SectionVariants(english=source),
            current=source,
            start_time=start_time,
            end_time=end_time,
        )

    @classmethod
    def from_detected(cls, section_id: str, detected: DetectedSection) -> Section:
        source = LanguageVariant(title=detected.title, summary=detected.summary, bullets=detected.bullets)
        return cls.new(section_id, source, detected.start_time, detected.end_time)


class VariantCache:
    """Language selection and regeneration over immutable ``Section`` values.

    Concurrent requests for the same (section, variant) share one in-flight
    call, so a double click issues a single transform. Calls are also keyed
    by the input they were made from: a request on a regenerated source never
    joins a call still translating the old one.
    """

    def __init__(self, transformer: VariantTransformer):
        self._transformer = transformer
        self._in_flight: dict[tuple[str, str, Hashable], asyncio.Future[LanguageVariant]] = {}

    def is_busy(self, section_id: str, key: str | None = None) -> bool:
        """True while a call for the section (or one of its variant keys) is in flight."""
        return any(
            sid == section_id and (key is None or slot_key == key)
            for sid, slot_key, _ in self._in_flight
        )

    async def _run_once(
        self,
        section_id: str,
        key: str,
        basis: Hashable,
        call: Callable[[], Awaitable[LanguageVariant]],
    ) -> LanguageVariant:
        slot = (section_id, key, basis)
        task = self._in_flight.get(slot)
        if task is None:
            task = asyncio.ensure_future(call())
            self._in_flight[slot] = task
            task.add_done_callback(lambda done: self._release(slot, done))
        else:
            logger.debug(f"Joining in-flight {key} request for section {section_id}")
        # A cancelled caller must not cancel the call other callers share
        return await asyncio.shield(task)

    def _release(self, slot: tuple[str, str, Hashable], task: asyncio.Future) -> None:
        self._in_flight.pop(slot, None)
        if not task.cancelled():
            # Mark the exception retrieved when every waiter was cancelled
            task.exception()

    async def select_language(
        self,
        section: Section,
        target: Language,
        tone: HinglishTone | None = None,
    ) -> Section:
        """Show ``target``; Hinglish uses ``tone``, else the last tone, else neutral."""
        if target == Language.ENGLISH:
            return replace(section, current=section.variants.english, language=Language.ENGLISH)
        if target == Language.HINGLISH:
            return await self.select_tone(section, tone or section.hinglish_tone or HinglishTone.NEUTRAL)

        cached = section.variants.hindi
        if cached is not None:
            return replace(section, current=cached, language=Language.HINDI)

        variant = await self._run_once(
            section.id,
            variant_key(Language.HINDI),
            section.source,
            lambda: self._transformer.transform_section(section.source, Language.HINDI),
        )
        return replace(
            section,
            variants=section.variants.with_entry(Language.HINDI, variant),
            current=variant,
            language=Language.HINDI,
        )

    async def select_tone(self, section: Section, tone: HinglishTone) -> Section:
        """Show the Hinglish rendering for ``tone``, fetching it on first use."""
        cached = section.variants.get(Language.HINGLISH, tone)
        if cached is not None:
            return replace(section, current=cached, language=Language.HINGLISH, hinglish_tone=tone)

        variant = await self._run_once(
            section.id,
            variant_key(Language.HINGLISH, tone),
            section.source,
            lambda: self._transformer.transform_section(section.source, Language.HINGLISH, tone),
        )
        return replace(
            section,
            variants=section.variants.with_entry(Language.HINGLISH, variant, tone),
            current=variant,
            language=Language.HINGLISH,
            hinglish_tone=tone,
        )

    async def regenerate_source(self, section: Section, transcript: str) -> Section:
        """Replace the English source from the transcript.

        Hindi and Hinglish renderings of the old source are dropped.
        """
        variant = await self._run_once(
            section.id,
            REGENERATE_KEY,
            (section.source, transcript),
            lambda: self._transformer.regenerate_section(section.source, transcript),
        )
        return replace(
            section,
            source=variant,
            variants=SectionVariants(english=variant),
            current=variant,
            language=Language.ENGLISH,
        )

    def edit_current(self, section: Section, **changes: Any) -> Section:
        """Manually patch ``current`` and the cache entry it was shown from.

        ``source`` is never touched by manual edits.
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot edit fields: {', '.join(sorted(unknown))}")

        patched = LanguageVariant.model_validate({**section.current.model_dump(), **changes})
        return replace(
            section,
            current=patched,
            variants=section.variants.with_entry(section.language, patched, section.hinglish_tone),
        )
