#!/usr/bin/env python3
"""Verify the Notely schema using the Supabase client, printing the DDL when it is missing."""
import sys

from notely.db.supabase_client import get_supabase

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id UUID PRIMARY KEY,
    email TEXT NOT NULL UNIQUE,
    name TEXT,
    avatar TEXT,
    ai_api_key TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS notes (
    id TEXT PRIMARY KEY,
    user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    title TEXT NOT NULL DEFAULT 'Untitled',
    content TEXT NOT NULL DEFAULT '',
    language TEXT NOT NULL DEFAULT 'english',
    source TEXT NOT NULL DEFAULT 'manual',
    is_ai_generated BOOLEAN NOT NULL DEFAULT false,
    youtube_url TEXT,
    video_id TEXT,
    is_favorite BOOLEAN NOT NULL DEFAULT false,
    color TEXT,
    version INTEGER NOT NULL DEFAULT 1,
    device_id TEXT,
    last_synced_at TIMESTAMPTZ,
    is_public BOOLEAN NOT NULL DEFAULT false,
    share_token TEXT UNIQUE,
    share_password TEXT,
    share_expires_at TIMESTAMPTZ,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
);
CREATE INDEX IF NOT EXISTS notes_user_updated_idx ON notes (user_id, updated_at);

CREATE TABLE IF NOT EXISTS note_sections (
    id TEXT PRIMARY KEY,
    note_id TEXT NOT NULL REFERENCES notes(id) ON DELETE CASCADE,
    title TEXT NOT NULL DEFAULT '',
    summary TEXT NOT NULL DEFAULT '',
    bullets JSONB NOT NULL DEFAULT '[]'::jsonb,
    language TEXT NOT NULL DEFAULT 'english',
    position INTEGER NOT NULL DEFAULT 0,
    start_time DOUBLE PRECISION,
    end_time DOUBLE PRECISION
);

CREATE TABLE IF NOT EXISTS tags (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    color TEXT,
    UNIQUE (user_id, name)
);

CREATE TABLE IF NOT EXISTS note_tags (
    note_id TEXT NOT NULL REFERENCES notes(id) ON DELETE CASCADE,
    tag_id UUID NOT NULL REFERENCES tags(id) ON DELETE CASCADE,
    PRIMARY KEY (note_id, tag_id)
);

-- Sync push: note row, sections and tags in one transaction
CREATE OR REPLACE FUNCTION sync_note(
    p_user_id UUID,
    p_note_id TEXT,
    p_fields JSONB,
    p_expected_version INTEGER,
    p_sections JSONB,
    p_tags JSONB
) RETURNS TEXT
LANGUAGE plpgsql
AS $$
DECLARE
    v_outcome TEXT;
BEGIN
    IF p_expected_version IS NULL THEN
        INSERT INTO notes (
            id, user_id, title, content, language, source, is_ai_generated,
            youtube_url, video_id, is_favorite, color, version, device_id, last_synced_at
        ) VALUES (
            p_note_id, p_user_id,
            COALESCE(p_fields->>'title', 'Untitled'),
            COALESCE(p_fields->>'content', ''),
            COALESCE(p_fields->>'language', 'english'),
            COALESCE(p_fields->>'source', 'manual'),
            COALESCE((p_fields->>'is_ai_generated')::BOOLEAN, false),
            p_fields->>'youtube_url',
            p_fields->>'video_id',
            COALESCE((p_fields->>'is_favorite')::BOOLEAN, false),
            p_fields->>'color',
            1,
            p_fields->>'device_id',
            (p_fields->>'last_synced_at')::TIMESTAMPTZ
        );
        v_outcome := 'created';
    ELSE
        UPDATE notes SET
            title = COALESCE(p_fields->>'title', title),
            content = COALESCE(p_fields->>'content', content),
            language = COALESCE(p_fields->>'language', language),
            source = COALESCE(p_fields->>'source', source),
            is_ai_generated = COALESCE((p_fields->>'is_ai_generated')::BOOLEAN, is_ai_generated),
            youtube_url = p_fields->>'youtube_url',
            video_id = p_fields->>'video_id',
            is_favorite = COALESCE((p_fields->>'is_favorite')::BOOLEAN, is_favorite),
            color = p_fields->>'color',
            version = p_expected_version + 1,
            device_id = p_fields->>'device_id',
            last_synced_at = (p_fields->>'last_synced_at')::TIMESTAMPTZ,
            updated_at = now()
        WHERE id = p_note_id AND user_id = p_user_id AND version = p_expected_version;
        IF NOT FOUND THEN
            RETURN 'conflict';
        END IF;
        v_outcome := 'updated';
    END IF;

    IF p_sections IS NOT NULL THEN
        DELETE FROM note_sections WHERE note_id = p_note_id;
        INSERT INTO note_sections
        SELECT * FROM jsonb_populate_recordset(NULL::note_sections, p_sections);
    END IF;

    IF p_tags IS NOT NULL THEN
        INSERT INTO tags (user_id, name)
        SELECT p_user_id, name FROM jsonb_array_elements_text(p_tags) AS name
        ON CONFLICT (user_id, name) DO NOTHING;
        DELETE FROM note_tags WHERE note_id = p_note_id;
        INSERT INTO note_tags (note_id, tag_id)
        SELECT p_note_id, t.id FROM tags t
        WHERE t.user_id = p_user_id AND t.name IN (SELECT jsonb_array_elements_text(p_tags));
    END IF;

    RETURN v_outcome;
END;
$$;
"""

# Columns probed per table
REQUIRED_COLUMNS = {
    "users": "id, email, name, avatar, ai_api_key",
    "notes": "id, user_id, version, device_id, last_synced_at, share_token, share_password, share_expires_at",
    "note_sections": "id, note_id, bullets, position, start_time, end_time",
    "tags": "id, user_id, name, color",
    "note_tags": "note_id, tag_id",
}


def run_migration():
    supabase = get_supabase()

    try:
        print("🚀 Verifying Notely schema")
        for table, columns in REQUIRED_COLUMNS.items():
            print(f"🔍 Checking {table}...")
            supabase.table(table).select(columns).limit(1).execute()
        print("✅ Schema is up to date!")

    except Exception as e:
        print(f"❌ Schema check failed: {e}")
        print("💡 Run this SQL in your Supabase SQL editor:")
        print(SCHEMA_SQL)
        sys.exit(1)


if __name__ == "__main__":
    run_migration()
