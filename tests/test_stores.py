"""Unit tests for the SQLAlchemy stores and the shared listing helpers.

Covers:
- Page.pagination() arithmetic and search_clause() short-circuit
- AccountStore: case-insensitive unique email, find_conflict(), full-record
  save, list_accounts() search/filters (LIKE wildcards are literal)
- ResourceStore: owner lookups, atomic views/likes counters, soft-deleted
  rows excluded from listings, tag search
- InternStore: unique personalInfo.email, append_entry() (no lost appends
  under concurrent writers), project listing
"""

import dataclasses
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import StaticPool

from auth.models import ROLE_ADMIN, Account
from auth.store import AccountStore
from core.database import Page, make_engine, search_clause
from interns.models import Intern, Project
from interns.store import InternStore
from resources.models import LearningResource, OwnerSnapshot, ToolResource
from resources.store import ResourceStore

OWNER = OwnerSnapshot(user_id=1, user_name="alice", email="alice@x.com")


@pytest.fixture
def accounts():
    s = AccountStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def resources():
    s = ResourceStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def interns():
    s = InternStore("sqlite:///:memory:")
    yield s
    s.close()


def _account(username: str, email: str, **kwargs) -> Account:
    return Account(username=username, email=email, hashed_password="$2b$04$hash", **kwargs)


def _intern(email: str = "ivy@x.com", first: str = "Ivy", department: str = "Engineering") -> Intern:
    return Intern(
        personal_info={"firstName": first, "lastName": "Intern", "email": email},
        internship_details={"startDate": "2024-01-15", "department": department, "status": "Active"},
    )


# ---------------------------------------------------------------------------
# Listing helpers
# ---------------------------------------------------------------------------


class TestPage:
    def test_pagination_block(self):
        page = Page(items=[1, 2], total=21, page=3, limit=10)
        assert page.pagination() == {"currentPage": 3, "totalPages": 3, "totalItems": 21, "itemsPerPage": 10}

    def test_empty_result_has_zero_pages(self):
        assert Page(total=0, limit=10).total_pages == 0

    def test_search_clause_none_for_empty_term(self):
        assert search_clause([], None) is None
        assert search_clause([], "") is None

    def test_memory_engine_uses_static_pool(self):
        engine = make_engine("sqlite:///:memory:")
        try:
            assert isinstance(engine.pool, StaticPool)
        finally:
            engine.dispose()


# ---------------------------------------------------------------------------
# AccountStore
# ---------------------------------------------------------------------------


class TestAccountStore:
    def test_email_is_stored_lower_case(self, accounts):
        account_id = accounts.create_account(_account("alice", "Alice@X.com"))
        assert accounts.get_by_id(account_id).email == "alice@x.com"
        assert accounts.get_by_email("ALICE@x.com").id == account_id

    def test_duplicate_email_differing_only_in_case_is_rejected(self, accounts):
        accounts.create_account(_account("alice", "alice@x.com"))
        with pytest.raises(IntegrityError):
            accounts.create_account(_account("alice2", "ALICE@x.com"))

    def test_duplicate_username_is_rejected(self, accounts):
        accounts.create_account(_account("alice", "alice@x.com"))
        with pytest.raises(IntegrityError):
            accounts.create_account(_account("alice", "other@x.com"))

    def test_username_lookup_is_case_sensitive(self, accounts):
        accounts.create_account(_account("alice", "alice@x.com"))
        assert accounts.get_by_username("alice") is not None
        assert accounts.get_by_username("Alice") is None

    def test_find_conflict(self, accounts):
        alice_id = accounts.create_account(_account("alice", "alice@x.com"))
        assert accounts.find_conflict("alice", "new@x.com").id == alice_id
        assert accounts.find_conflict("new", "ALICE@x.com").id == alice_id
        assert accounts.find_conflict("new", "new@x.com") is None
        assert accounts.find_conflict("alice", "alice@x.com", exclude_id=alice_id) is None

    def test_save_account_persists_whole_record(self, accounts):
        account_id = accounts.create_account(_account("alice", "alice@x.com"))
        current = accounts.get_by_id(account_id)
        updated = dataclasses.replace(
            current,
            role=ROLE_ADMIN,
            is_active=False,
            profile={"firstName": "Alice"},
            settings={"theme": "dark"},
        )
        assert accounts.save_account(updated) is True
        stored = accounts.get_by_id(account_id)
        assert stored.role == ROLE_ADMIN
        assert stored.is_active is False
        assert stored.profile == {"firstName": "Alice"}
        assert stored.settings == {"theme": "dark"}

    def test_save_unknown_account_returns_false(self, accounts):
        assert accounts.save_account(_account("ghost", "ghost@x.com", id=999)) is False

    def test_update_last_login(self, accounts):
        account_id = accounts.create_account(_account("alice", "alice@x.com"))
        assert accounts.get_by_id(account_id).last_login is None
        accounts.update_last_login(account_id)
        assert accounts.get_by_id(account_id).last_login is not None

    def test_list_search_matches_profile_names(self, accounts):
        accounts.create_account(_account("alice", "alice@x.com", profile={"firstName": "Alicia"}))
        accounts.create_account(_account("bob", "bob@x.com", profile={"lastName": "Builder"}))
        page = accounts.list_accounts(search="build")
        assert [a.username for a in page.items] == ["bob"]
        assert page.total == 1

    def test_list_filters_role_and_active(self, accounts):
        accounts.create_account(_account("root", "root@x.com", role=ROLE_ADMIN))
        accounts.create_account(_account("alice", "alice@x.com"))
        accounts.create_account(_account("gone", "gone@x.com", is_active=False))
        assert [a.username for a in accounts.list_accounts(role=ROLE_ADMIN).items] == ["root"]
        assert [a.username for a in accounts.list_accounts(is_active=False).items] == ["gone"]
        assert accounts.list_accounts().total == 3

    def test_list_wildcards_are_literal(self, accounts):
        accounts.create_account(_account("alice", "alice@x.com"))
        assert accounts.list_accounts(search="%").total == 0
        assert accounts.list_accounts(search="_").total == 0

    def test_list_is_newest_first_and_paginated(self, accounts):
        for i in range(5):
            accounts.create_account(_account(f"user{i}", f"user{i}@x.com"))
        page = accounts.list_accounts(page=2, limit=2)
        assert [a.username for a in page.items] == ["user2", "user1"]
        assert page.pagination() == {"currentPage": 2, "totalPages": 3, "totalItems": 5, "itemsPerPage": 2}


# ---------------------------------------------------------------------------
# ResourceStore
# ---------------------------------------------------------------------------


class TestResourceStore:
    def _learning(self, title="Python Basics", tags=None) -> LearningResource:
        return LearningResource(
            title=title,
            category="Tutorial",
            url="https://example.com/python",
            created_by=OWNER,
            tags=tags or [],
        )

    def test_create_and_get_learning_resource(self, resources):
        rid = resources.create_learning_resource(self._learning(tags=["python"]))
        stored = resources.get_learning_resource(rid)
        assert stored.title == "Python Basics"
        assert stored.tags == ["python"]
        assert stored.created_by == OWNER
        assert stored.updated_by is None
        assert (stored.views, stored.likes) == (0, 0)

    def test_owner_lookup(self, resources):
        rid = resources.create_learning_resource(self._learning())
        assert resources.learning_resource_owner(rid) == OWNER.user_id
        assert resources.learning_resource_owner(999) is None

    def test_counters_are_incremental(self, resources):
        rid = resources.create_learning_resource(self._learning())
        assert resources.increment_views(rid) is True
        assert resources.increment_views(rid) is True
        assert resources.add_like(rid) == 1
        assert resources.add_like(rid) == 2
        stored = resources.get_learning_resource(rid)
        assert (stored.views, stored.likes) == (2, 2)

    def test_counters_on_missing_resource(self, resources):
        assert resources.increment_views(999) is False
        assert resources.add_like(999) is None

    def test_save_does_not_roll_back_counters(self, resources):
        rid = resources.create_learning_resource(self._learning())
        stale = resources.get_learning_resource(rid)
        resources.add_like(rid)
        resources.save_learning_resource(dataclasses.replace(stale, title="Renamed"))
        stored = resources.get_learning_resource(rid)
        assert stored.title == "Renamed"
        assert stored.likes == 1

    def test_listing_excludes_soft_deleted(self, resources):
        keep = resources.create_learning_resource(self._learning("Keep"))
        drop = resources.create_learning_resource(self._learning("Drop"))
        resources.save_learning_resource(dataclasses.replace(resources.get_learning_resource(drop), is_active=False))
        page = resources.list_learning_resources()
        assert [r.id for r in page.items] == [keep]
        # still reachable by id; the route decides what to do with it
        assert resources.get_learning_resource(drop).is_active is False

    def test_search_covers_tags(self, resources):
        resources.create_learning_resource(self._learning("Intro", tags=["FastAPI"]))
        resources.create_learning_resource(self._learning("Other"))
        page = resources.list_learning_resources(search="fastapi")
        assert [r.title for r in page.items] == ["Intro"]

    def test_tool_round_trip_and_filters(self, resources):
        tid = resources.create_tool(
            ToolResource(
                tool_name="Docker",
                category="DevOps",
                official_url="https://docker.com",
                created_by=OWNER,
                tech_stack=["linux"],
                pricing="Freemium",
                rating=5,
            )
        )
        resources.create_tool(
            ToolResource(tool_name="Figma", category="Design", official_url="https://figma.com", created_by=OWNER)
        )
        assert resources.get_tool(tid).tech_stack == ["linux"]
        assert resources.tool_owner(tid) == OWNER.user_id
        assert [t.tool_name for t in resources.list_tools(category="DevOps").items] == ["Docker"]
        assert [t.tool_name for t in resources.list_tools(pricing="Free").items] == ["Figma"]
        assert [t.tool_name for t in resources.list_tools(search="fig").items] == ["Figma"]


# ---------------------------------------------------------------------------
# InternStore
# ---------------------------------------------------------------------------


class TestInternStore:
    def test_create_normalises_email(self, interns):
        iid = interns.create_intern(_intern(email="Ivy@X.com"))
        assert interns.get_intern(iid).personal_info["email"] == "ivy@x.com"

    def test_duplicate_email_rejected(self, interns):
        interns.create_intern(_intern(email="ivy@x.com"))
        with pytest.raises(IntegrityError):
            interns.create_intern(_intern(email="IVY@x.com", first="Other"))

    def test_append_entry_keeps_existing_entries(self, interns):
        iid = interns.create_intern(_intern())
        interns.append_entry(iid, "daily_comments", {"comment": "first"})
        updated = interns.append_entry(iid, "daily_comments", {"comment": "second"})
        assert [c["comment"] for c in updated.daily_comments] == ["first", "second"]
        assert updated.meeting_notes == []

    def test_append_entry_unknown_intern(self, interns):
        assert interns.append_entry(999, "meeting_notes", {"notes": "x"}) is None

    def test_append_entry_rejects_unknown_section(self, interns):
        iid = interns.create_intern(_intern())
        with pytest.raises(ValueError):
            interns.append_entry(iid, "personal_info", {})

    def test_concurrent_appends_are_all_kept(self, tmp_path):
        store = InternStore(f"sqlite:///{tmp_path / 'interns.db'}")
        try:
            iid = store.create_intern(_intern())

            def append_many(worker: int) -> None:
                for n in range(25):
                    store.append_entry(iid, "daily_comments", {"comment": f"{worker}-{n}"})

            with ThreadPoolExecutor(max_workers=8) as pool:
                list(pool.map(append_many, range(8)))

            comments = store.get_intern(iid).daily_comments
            assert len(comments) == 200
            assert len({c["comment"] for c in comments}) == 200
        finally:
            store.close()

    def test_list_filters_and_search(self, interns):
        interns.create_intern(_intern(email="a@x.com", first="Ada", department="Engineering"))
        interns.create_intern(_intern(email="g@x.com", first="Grace", department="Design"))
        assert [i.personal_info["firstName"] for i in interns.list_interns(department="Design").items] == ["Grace"]
        assert [i.personal_info["firstName"] for i in interns.list_interns(search="ada").items] == ["Ada"]
        assert interns.list_interns(status="Completed").total == 0

    def test_projects(self, interns):
        pid = interns.create_project(Project(project_name="Dashboard", technologies=["python"], created_by=1))
        interns.create_project(Project(project_name="Website", status="Completed"))
        assert interns.get_project(pid).technologies == ["python"]
        assert [p.project_name for p in interns.list_projects(status="Planning").items] == ["Dashboard"]
        assert [p.project_name for p in interns.list_projects(search="web").items] == ["Website"]
        project = interns.get_project(pid)
        interns.save_project(dataclasses.replace(project, is_active=False))
        assert [p.project_name for p in interns.list_projects().items] == ["Website"]
