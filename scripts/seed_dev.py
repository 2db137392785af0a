from datetime import date, datetime, time, timedelta, timezone

from golflottery.db.engine import get_sessionmaker, make_engine
from golflottery.lottery import TeeSheetConfig
from golflottery.lottery.windows import generate_slot_times
from golflottery.models import Base, Member, MemberFairnessScore, month_key
from golflottery.models.teesheet import TeeSlot
from golflottery.workflows import (
    record_pace_of_play,
    submit_lottery_entry,
    submit_lottery_group,
    update_member_speed_profile,
)

SAMPLE_CONFIG = TeeSheetConfig(start_time=time(7, 0), end_time=time(15, 0), interval=10)

# (member number, first name, last name, class, recent round minutes)
SAMPLE_MEMBERS = [
    ("1001", "Avery", "Lind", "REGULAR", [228, 232, 231]),
    ("1002", "Jordan", "Kim", "REGULAR", [241, 238]),
    ("1003", "Riley", "Okafor", "SENIOR", [252, 249, 257]),
    ("1004", "Casey", "Moreau", "REGULAR", [233]),
    ("1005", "Morgan", "Silva", "JUNIOR", []),
    ("1006", "Quinn", "Haddad", "REGULAR", [244, 240]),
    ("1007", "Rowan", "Ng", "SENIOR", [260]),
    ("1008", "Sage", "Petrov", "REGULAR", [236, 239]),
]


def main() -> None:
    """Reset the development database and seed one week-ahead lottery date."""
    engine = make_engine()
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    Session = get_sessionmaker(engine)

    lottery_date = date.today() + timedelta(days=7)
    now = datetime.now(timezone.utc)

    with Session.begin() as session:
        members: list[Member] = []
        for number, first, last, member_class, rounds in SAMPLE_MEMBERS:
            member = Member(
                member_number=number,
                first_name=first,
                last_name=last,
                member_class=member_class,
                created_at=now,
                updated_at=now,
            )
            session.add(member)
            session.flush()
            if rounds:
                record_pace_of_play(session, member.id, rounds, calculated_at=now)
            members.append(member)

        # A committee volunteer gets a small admin boost.
        update_member_speed_profile(
            session, members[3].id, admin_priority_adjustment=3, notes="Course volunteer"
        )
        # Member 1006 was repeatedly denied earlier this month.
        session.add(
            MemberFairnessScore(
                member_id=members[5].id,
                current_month=month_key(lottery_date),
                total_entries_month=3,
                preferences_granted_month=1,
                preference_fulfillment_rate=1 / 3,
                days_without_good_time=2,
                fairness_score=24,
            )
        )

        TeeSlot.ensure_for_date(
            session,
            lottery_date,
            generate_slot_times(SAMPLE_CONFIG),
            SAMPLE_CONFIG.max_members_per_block,
        )

        submit_lottery_entry(session, members[0], lottery_date, "EARLY_MORNING", alternate_window="MORNING")
        submit_lottery_entry(session, members[1], lottery_date, "EARLY_MORNING", specific_time_preference="07:20")
        submit_lottery_entry(session, members[2], lottery_date, "MIDDAY")
        submit_lottery_entry(session, members[5], lottery_date, "EARLY_MORNING", alternate_window="AFTERNOON")
        submit_lottery_group(
            session,
            members[3],
            lottery_date,
            [members[4].id, members[6].id, members[7].id],
            "MORNING",
            alternate_window="MIDDAY",
        )

    print(f"Development database seeded with lottery entries for {lottery_date.isoformat()}.")


if __name__ == "__main__":
    main()
