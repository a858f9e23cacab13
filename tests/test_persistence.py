"""Tests for the store: models, migrations, seeding and the meta register."""
import pytest
from sqlalchemy import create_engine, inspect, select, text

from src.persistence.database import Database
from src.persistence.meta import (
    SEEDED,
    get_meta,
    get_preferences,
    mark_now,
    set_meta,
    set_preferences,
)
from src.persistence.models import (
    ApplicationStatus,
    Company,
    Source,
    is_overwritable,
    mailbox_search_key,
)
from src.persistence.seed import load_seed_companies


SEED_YAML = """
companies:
  - name: Anthropic
    slug: anthropic
    website_url: https://www.anthropic.com
    source: greenhouse
  - name: Linear
    slug: " Linear "
    source: ashby
  - name: Broken
    source: lever
  - name: Mystery
    slug: mystery
    source: workday
"""


class TestModelHelpers:
    """Tests for model-level helpers."""

    def test_mailbox_search_key(self):
        assert mailbox_search_key("Scale AI, Inc.") == "scaleaiinc"
        assert mailbox_search_key("") == ""

    def test_overwritable_statuses(self):
        assert is_overwritable("new")
        assert is_overwritable("applied")
        for status in ("phone_screen", "interview", "offer", "rejected", "withdrawn", "complete"):
            assert not is_overwritable(status)

    def test_status_values(self):
        assert [s.value for s in ApplicationStatus][:5] == [
            "new", "applied", "phone_screen", "interview", "offer",
        ]

    def test_company_source_kind(self, session):
        company = Company(name="Acme", slug="acme")
        session.add(company)
        session.commit()

        assert company.source == "greenhouse"
        assert company.source_kind is Source.GREENHOUSE
        assert "acme" in repr(company)


class TestDatabase:
    """Tests for Database construction."""

    def test_creates_tables(self, db):
        tables = set(inspect(db.engine).get_table_names())
        assert {"companies", "jobs", "applications", "meta"} <= tables

    def test_session_rolls_back_on_error(self, db):
        with pytest.raises(RuntimeError):
            with db.session() as session:
                session.add(Company(name="Acme", slug="acme"))
                session.flush()
                raise RuntimeError("boom")

        with db.session() as session:
            assert session.execute(select(Company)).first() is None

    def test_savepoint_release_keeps_outer_transaction_open(self, db):
        session = db.session_direct()
        try:
            with session.begin_nested():
                session.add(Company(name="Acme", slug="acme"))
            session.rollback()

            assert session.execute(select(Company)).first() is None
        finally:
            session.close()

    def test_foreign_keys_enforced(self, db):
        with db.engine.connect() as conn:
            assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1

    def test_adds_missing_columns(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'old.db'}"
        legacy = create_engine(url)
        with legacy.begin() as conn:
            conn.execute(text(
                "CREATE TABLE companies (id INTEGER PRIMARY KEY, name VARCHAR NOT NULL, "
                "slug VARCHAR UNIQUE NOT NULL, website_url VARCHAR, is_active BOOLEAN, "
                "created_at DATETIME)"
            ))
            conn.execute(text(
                "CREATE TABLE jobs (id INTEGER PRIMARY KEY, external_id VARCHAR UNIQUE NOT NULL, "
                "company_id INTEGER NOT NULL REFERENCES companies(id) ON DELETE CASCADE, "
                "title VARCHAR NOT NULL, job_url VARCHAR NOT NULL, location VARCHAR, "
                "department VARCHAR, fetched_at DATETIME)"
            ))
            conn.execute(text(
                "INSERT INTO companies (id, name, slug, is_active) VALUES (1, 'Acme', 'acme', 1)"
            ))
        legacy.dispose()

        database = Database(url)
        try:
            inspector = inspect(database.engine)
            job_columns = {c["name"] for c in inspector.get_columns("jobs")}
            company_columns = {c["name"] for c in inspector.get_columns("companies")}
            assert {"posted_at", "experience", "source"} <= job_columns
            assert "source" in company_columns

            with database.session() as session:
                assert session.get(Company, 1).source == "greenhouse"
        finally:
            database.dispose()

    def test_migration_is_repeatable(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'twice.db'}"
        Database(url).dispose()
        Database(url).dispose()


class TestSeeding:
    """Tests for first-run company seeding."""

    def test_load_seed_companies(self, tmp_path):
        seed = tmp_path / "companies.yaml"
        seed.write_text(SEED_YAML)

        entries = load_seed_companies(seed)

        assert [e["slug"] for e in entries] == ["anthropic", "linear"]
        assert entries[1]["source"] == "ashby"

    def test_missing_seed_file(self, tmp_path):
        assert load_seed_companies(tmp_path / "nope.yaml") == []

    def test_seed_once(self, tmp_path):
        seed = tmp_path / "companies.yaml"
        seed.write_text(SEED_YAML)
        database = Database("sqlite://", seed_file=seed)

        try:
            with database.session() as session:
                slugs = set(session.execute(select(Company.slug)).scalars())
                assert slugs == {"anthropic", "linear"}
                assert get_meta(session, SEEDED) == "1"
                session.delete(session.execute(
                    select(Company).where(Company.slug == "linear")
                ).scalar_one())

            # A deleted seed company stays deleted
            database.init_db(seed)
            with database.session() as session:
                slugs = set(session.execute(select(Company.slug)).scalars())
                assert slugs == {"anthropic"}
        finally:
            database.dispose()

    def test_bundled_seed_file_is_valid(self):
        from config.settings import settings

        entries = load_seed_companies(settings.companies_seed_file)

        assert entries
        assert {e["source"] for e in entries} == {"greenhouse", "lever", "ashby"}


class TestMeta:
    """Tests for the key/value register."""

    def test_get_missing(self, session):
        assert get_meta(session, "nope") is None

    def test_last_write_wins(self, session):
        set_meta(session, "target_role", "Product Manager")
        set_meta(session, "target_role", "Product Lead")
        session.commit()

        assert get_meta(session, "target_role") == "Product Lead"

    def test_mark_now(self, session):
        stamp = mark_now(session, "last_refreshed")

        assert get_meta(session, "last_refreshed") == stamp
        assert stamp.endswith("+00:00")

    def test_preference_defaults(self, session):
        prefs = get_preferences(session)

        assert prefs == {
            "target_role": None,
            "target_location": None,
            "target_location_type": "all",
            "target_exp": "all",
            "target_date_within": "any",
        }

    def test_set_preferences(self, session):
        set_preferences(session, target_role="PM", target_exp="senior", target_location=None)

        prefs = get_preferences(session)
        assert prefs["target_role"] == "PM"
        assert prefs["target_exp"] == "senior"
        assert prefs["target_location"] is None

    def test_set_unknown_preference(self, session):
        with pytest.raises(ValueError, match="Unknown preference"):
            set_preferences(session, favourite_colour="blue")
