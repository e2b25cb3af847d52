import random
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import sessionmaker

from gatchacha.db.engine import make_engine
from gatchacha.draw import GachaDrawEngine
from gatchacha.models import Base, User
from gatchacha.session import GachaSession
from gatchacha.store import DatabaseStateStore
from gatchacha.workflows import (
    create_template,
    load_templates,
    save_gacha_result,
    seed_system_templates,
)


def main() -> None:
    """Seed the development database with sample data."""
    engine = make_engine()

    # Drop and recreate all tables. Foreign key checks are disabled during the
    # drop so SQLite does not trip over the user -> template/result links.
    with engine.connect() as conn:
        conn.exec_driver_sql("PRAGMA foreign_keys=OFF")
        Base.metadata.drop_all(bind=conn)
        conn.exec_driver_sql("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)

    now = datetime.now(timezone.utc)

    with Session.begin() as session:
        seed_system_templates(session)

        # Users
        user1 = User(
            email="alice@example.com",
            display_name="Alice",
            created_at=now,
            updated_at=now,
        )
        user2 = User(
            email="bob@example.com",
            display_name="Bob",
            created_at=now,
            updated_at=now,
        )
        session.add_all([user1, user2])
        session.flush()

        # Custom templates
        create_template(
            session,
            user1,
            "Office Party",
            "classic",
            {"tier1": 1, "tier2": 2, "tier3": 5, "tier4": 10, "tier5": 20},
            item_label="Prize",
            is_public=True,
        )
        create_template(
            session,
            user2,
            "Bob's Secret Stash",
            "neon",
            {"tier1": 1, "tier3": 3, "tier5": 6},
        )

        # Play a few rounds for Alice on the classic template with a fixed seed.
        gacha = GachaSession(
            load_templates(session, user1),
            DatabaseStateStore(session, user_id=user1.id),
            engine=GachaDrawEngine(random.Random(89)),
        )
        gacha.select_template("default")
        for offset in range(5):
            drawn = gacha.draw()
            if drawn.item is None:
                break
            record = save_gacha_result(session, user1, "default", "Classic Draw", drawn.item)
            record.drawn_at = now - timedelta(minutes=5 - offset)
        session.flush()

    print("Development database seeded.")


if __name__ == "__main__":
    main()
