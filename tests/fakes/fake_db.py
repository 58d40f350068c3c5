"""Fake in-memory notes store for sync reconciliation tests."""

from copy import deepcopy
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List
from uuid import UUID

from notely.core.schemas_notes import NoteOut, NoteSectionIn

BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeNotesDB:
    """In-memory stand-in for ``notely.db.notes`` and ``notely.db.tags``."""

    def __init__(self):
        self.reset()

    def reset(self):
        """Reset all stores to initial state."""
        self.notes: Dict[str, Dict[str, Any]] = {}
        self.sections: Dict[str, List[NoteSectionIn]] = {}
        self.note_tags: Dict[str, List[str]] = {}
        self.clock = BASE_TIME
        # note_id -> version another device writes right before our conditional update
        self.race_versions: Dict[str, int] = {}
        self.fail_on_insert: set[str] = set()
        # note_id -> error raised while writing its sections, after the row write
        self.fail_on_children: Dict[str, Exception] = {}

    def tick(self) -> datetime:
        self.clock = self.clock + timedelta(seconds=1)
        return self.clock

    def utc_now(self) -> datetime:
        return self.tick()

    def seed(self, user_id: UUID, note_id: str, version: int, **fields: Any) -> Dict[str, Any]:
        row = {
            "id": note_id,
            "user_id": str(user_id),
            "title": fields.pop("title", f"Note {note_id}"),
            "content": fields.pop("content", ""),
            "version": version,
            "updated_at": self.tick().isoformat(),
            **fields,
        }
        self.notes[note_id] = row
        return row

    # notes operations
    def get_note_version(self, user_id: UUID, note_id: str) -> int | None:
        row = self.notes.get(note_id)
        if not row or row["user_id"] != str(user_id):
            return None
        return row["version"]

    def insert_note(self, user_id: UUID, fields: Dict[str, Any]) -> Dict[str, Any]:
        if fields["id"] in self.fail_on_insert:
            raise ValueError("duplicate key value violates unique constraint")
        now = self.tick().isoformat()
        row = {**fields, "user_id": str(user_id), "version": 1, "created_at": now, "updated_at": now}
        self.notes[row["id"]] = row
        return row

    def update_note(
        self,
        user_id: UUID,
        note_id: str,
        fields: Dict[str, Any],
        expected_version: int | None = None,
    ) -> Dict[str, Any] | None:
        row = self.notes.get(note_id)
        if not row or row["user_id"] != str(user_id):
            return None
        if note_id in self.race_versions:
            row["version"] = self.race_versions.pop(note_id)
        if expected_version is not None and row["version"] != expected_version:
            return None
        row.update(fields)
        row["updated_at"] = self.tick().isoformat()
        return row

    def replace_sections(self, note_id: str, sections: List[NoteSectionIn]) -> None:
        self.sections[note_id] = list(sections)

    def set_note_tags(self, user_id: UUID, note_id: str, names: List[str]) -> None:
        self.note_tags[note_id] = list(dict.fromkeys(n.strip() for n in names if n.strip()))

    def sync_note(
        self,
        user_id: UUID,
        note_id: str,
        fields: Dict[str, Any],
        expected_version: int | None,
        sections: List[NoteSectionIn] | None = None,
        tags: List[str] | None = None,
    ) -> str | None:
        """Same contract as ``notely.db.notes.sync_note``; a failure rolls everything back."""
        snapshot = deepcopy((self.notes, self.sections, self.note_tags))
        try:
            if expected_version is None:
                self.insert_note(user_id, {**fields, "id": note_id})
                outcome = "created"
            else:
                row = self.update_note(
                    user_id, note_id, {**fields, "version": expected_version + 1}, expected_version
                )
                if row is None:
                    return None
                outcome = "updated"
            if sections is not None:
                if note_id in self.fail_on_children:
                    raise self.fail_on_children[note_id]
                self.replace_sections(note_id, sections)
            if tags is not None:
                self.set_note_tags(user_id, note_id, tags)
        except Exception:
            self.notes, self.sections, self.note_tags = snapshot
            raise
        return outcome

    def _note_out(self, row: Dict[str, Any]) -> NoteOut:
        sections = [
            {**s.model_dump(), "id": s.id or f"{row['id']}-s{i}"}
            for i, s in enumerate(self.sections.get(row["id"], []))
        ]
        return NoteOut.model_validate(
            {**row, "sections": sections, "tags": self.note_tags.get(row["id"], [])}
        )

    def list_notes_since(self, user_id: UUID, since: datetime | None = None) -> List[NoteOut]:
        rows = [r for r in self.notes.values() if r["user_id"] == str(user_id)]
        if since is not None:
            rows = [r for r in rows if datetime.fromisoformat(r["updated_at"]) > since]
        rows.sort(key=lambda r: r["updated_at"])
        return [self._note_out(r) for r in rows]

    def count_notes(self, user_id: UUID, since: datetime | None = None) -> int:
        return len(self.list_notes_since(user_id, since))


fake_db = FakeNotesDB()
