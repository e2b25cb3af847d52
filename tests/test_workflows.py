import random
import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from sqlalchemy import create_engine, func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from gatchacha.draw import GachaDrawEngine, PrizeItem
from gatchacha.models import Base, GachaResult, GachaTemplate, User
from gatchacha.session import GachaSession
from gatchacha.store import DatabaseStateStore
from gatchacha.templates import SYSTEM_TEMPLATES
from gatchacha.workflows import (
    HISTORY_LIMIT,
    create_template,
    get_gacha_history,
    load_templates,
    make_database_result_hook,
    save_gacha_result,
    seed_system_templates,
)


def _item(n: int = 1, tier: int = 5) -> PrizeItem:
    return PrizeItem(id=f"common-{n}", name=f"Common Item #{n}", tier=tier, weight=62, drawn=True)


class WorkflowTestCase(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )

    def tearDown(self):
        self.engine.dispose()

    def _user(self, session, email="player@example.com"):
        user = User(email=email)
        session.add(user)
        session.flush()
        return user


class SeedSystemTemplatesTests(WorkflowTestCase):
    def test_seeding_is_idempotent(self):
        with self.Session.begin() as session:
            created = seed_system_templates(session)
            self.assertEqual(len(created), len(SYSTEM_TEMPLATES))
        with self.Session.begin() as session:
            self.assertEqual(seed_system_templates(session), [])
            count = session.scalar(select(func.count()).select_from(GachaTemplate))
            self.assertEqual(count, len(SYSTEM_TEMPLATES))

    def test_seeded_rows_match_builtin_definitions(self):
        with self.Session.begin() as session:
            seed_system_templates(session)
        with self.Session() as session:
            for definition in SYSTEM_TEMPLATES:
                row = session.get(GachaTemplate, definition.id)
                assert row is not None
                self.assertTrue(row.is_system)
                self.assertEqual(row.to_definition(), definition)


class LoadTemplatesTests(WorkflowTestCase):
    def test_anonymous_players_get_builtin_catalogue(self):
        with self.Session() as session:
            registry = load_templates(session)
        self.assertEqual(registry.ids(), [t.id for t in SYSTEM_TEMPLATES])

    def test_empty_database_falls_back_to_builtins(self):
        with self.Session.begin() as session:
            user = self._user(session)
            registry = load_templates(session, user)
        self.assertEqual(len(registry), len(SYSTEM_TEMPLATES))

    def test_signed_in_players_see_visible_templates(self):
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        with self.Session.begin() as session:
            me = self._user(session)
            other = self._user(session, "other@example.com")
            session.add_all(
                [
                    GachaTemplate(id="system", name="System", is_system=True, created_at=base),
                    GachaTemplate(
                        id="mine", name="Mine", user_id=me.id,
                        counts={"tier3": 2}, created_at=base + timedelta(hours=1),
                    ),
                    GachaTemplate(
                        id="private", name="Private", user_id=other.id,
                        created_at=base + timedelta(hours=2),
                    ),
                ]
            )
            session.flush()
            registry = load_templates(session, me)
        self.assertEqual(registry.ids(), ["mine", "system"])
        self.assertEqual(registry["mine"].total_items, 2)

    def test_query_failure_falls_back_to_builtins(self):
        with self.Session.begin() as session:
            user = self._user(session)
            with patch.object(
                GachaTemplate,
                "visible_to",
                side_effect=OperationalError("SELECT", {}, Exception("db down")),
            ):
                with self.assertLogs("gatchacha.workflows", level="ERROR"):
                    registry = load_templates(session, user)
        self.assertEqual(registry.ids(), [t.id for t in SYSTEM_TEMPLATES])


class CreateTemplateTests(WorkflowTestCase):
    def test_creates_owned_template(self):
        with self.Session.begin() as session:
            user = self._user(session)
            definition = create_template(
                session, user, "My Draw", "neon", {"tier1": 1, "tier4": 3},
                item_label="Token", is_public=True,
            )
            row = session.get(GachaTemplate, definition.id)
            assert row is not None
            self.assertEqual(row.user_id, user.id)
            self.assertTrue(row.is_public)
            self.assertFalse(row.is_system)
        self.assertEqual(definition.total_items, 4)
        self.assertEqual(definition.build_pool().items[0].name, "Legendary Token #1")

    def test_default_item_label(self):
        with self.Session.begin() as session:
            user = self._user(session)
            definition = create_template(session, user, "Plain", "classic", {"tier5": 1})
        self.assertEqual(definition.item_label, "Item")

    def test_validation(self):
        with self.Session.begin() as session:
            with self.assertRaises(ValueError):
                create_template(session, User(email="new@example.com"), "X", "classic", {})
            user = self._user(session)
            with self.assertRaises(ValueError):
                create_template(session, user, " ", "classic", {"tier5": 1})
            with self.assertRaises(ValueError):
                create_template(session, user, "Bad", "classic", {"tier5": -1})


class ResultHistoryTests(WorkflowTestCase):
    def test_anonymous_results_are_not_recorded(self):
        with self.Session.begin() as session:
            self.assertIsNone(save_gacha_result(session, None, "default", "Classic Draw", _item()))
            self.assertEqual(get_gacha_history(session, None), [])
            count = session.scalar(select(func.count()).select_from(GachaResult))
            self.assertEqual(count, 0)

    def test_save_and_read_history(self):
        base = datetime(2024, 3, 1, tzinfo=timezone.utc)
        with self.Session.begin() as session:
            user = self._user(session)
            for n in range(1, 4):
                result = save_gacha_result(session, user, "default", "Classic Draw", _item(n))
                assert result is not None
                result.drawn_at = base + timedelta(seconds=n)
            session.flush()
            history = get_gacha_history(session, user)
            self.assertEqual(
                [r.item_name for r in history],
                ["Common Item #3", "Common Item #2", "Common Item #1"],
            )
            self.assertEqual(len(get_gacha_history(session, user, limit=2)), 2)
            with self.assertRaises(ValueError):
                get_gacha_history(session, user, limit=-1)

    def test_history_limit_default(self):
        self.assertEqual(HISTORY_LIMIT, 100)
        with self.Session.begin() as session:
            user = self._user(session)
            for n in range(HISTORY_LIMIT + 5):
                save_gacha_result(session, user, "default", "Classic Draw", _item(n))
            self.assertEqual(len(get_gacha_history(session, user)), HISTORY_LIMIT)

    def test_database_result_hook_records_draws(self):
        with self.Session.begin() as session:
            user = self._user(session)
            hook = make_database_result_hook(session, user)
            hook("space", "Space Draw", _item(7, tier=4))
            stored = get_gacha_history(session, user)
        self.assertEqual(len(stored), 1)
        self.assertEqual(
            (stored[0].template_id, stored[0].template_name, stored[0].item_id, stored[0].tier),
            ("space", "Space Draw", "common-7", 4),
        )

    def test_database_hook_runs_inline_on_the_drawing_thread(self):
        with self.Session.begin() as session:
            user = self._user(session)
            gacha = GachaSession(
                load_templates(session),
                DatabaseStateStore(session, user_id=user.id),
                engine=GachaDrawEngine(random.Random(3)),
                result_hook=make_database_result_hook(session, user),
            )
            self.assertIsNone(gacha.executor)
            gacha.select_template("cyber")
            drawn = [gacha.draw().item.id for _ in range(3)]
            stored = get_gacha_history(session, user)
        self.assertEqual(sorted(r.item_id for r in stored), sorted(drawn))
        self.assertTrue(all(r.template_name == "Cyber Draw" for r in stored))


if __name__ == "__main__":
    unittest.main()
