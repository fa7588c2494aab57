import time
from datetime import date, datetime

import pytest

from labdb.models import (
    Attachment,
    Icon,
    Link,
    MemberInfo,
    MemberRole,
    News,
    NewsType,
    Person,
    Photo,
    Publication,
    Tag,
    TagType,
)
from labdb.store.codec import (
    decode_date,
    decode_enum,
    decode_news,
    decode_person,
    decode_photo,
    decode_publication,
    encode_date,
    encode_enum,
    encode_news,
    encode_person,
    encode_photo,
    encode_publication,
)


def make_member():
    return Person(
        id="$000X01",
        firstname="Grace",
        middlename="Brewster",
        lastname="Hopper",
        preferred_name="Amazing Grace",
        member_info=MemberInfo(
            role=MemberRole.phd,
            when_joined=date(2019, 9, 1),
            when_left=date(2024, 6, 30),
            email="grace@navy.mil",
            links=[Link(link="https://github.com/grace", icon=Icon.github)],
            selected_pub_ids=["+000X01"],
        ),
    )


def test_person_round_trip():
    person = make_member()

    doc = encode_person(person)

    assert doc["preferredName"] == "Amazing Grace"
    assert doc["memberInfo"]["role"] == "phd"
    assert doc["memberInfo"]["whenJoined"] == "2019-09-01"
    assert doc["memberInfo"]["links"] == [{"link": "https://github.com/grace", "icon": "github"}]
    assert decode_person(doc) == person


def test_absent_optionals_are_not_emitted():
    doc = encode_person(Person(id="$a", firstname="Alan", lastname="Turing"))

    assert doc == {"id": "$a", "firstname": "Alan", "lastname": "Turing"}


def test_publication_round_trip():
    pub = Publication(
        id="+000X01",
        title="Compiling for Fun",
        author_ids=["$a", "$b"],
        time=date(2023, 10, 14),
        booktitle="MICRO",
        doi="10.1145/1234567.1234568",
        equal_contrib=2,
        not_affiliated=False,
        tags=[Tag(label="Best Paper", type=TagType.award, icon=Icon.medal)],
        attachments=[Attachment(label="Slides", link="/slides.pdf", icon=Icon.pdf)],
    )

    doc = encode_publication(pub)

    assert doc["authorIds"] == ["$a", "$b"]
    assert doc["time"] == "2023-10-14"
    assert doc["notAffiliated"] is False
    assert doc["tags"] == [{"label": "Best Paper", "type": "award", "icon": "medal"}]
    assert decode_publication(doc) == pub


def test_photo_and_news_round_trip():
    photo = Photo(id="p-000X01", title="Retreat", width=1600, height=900, image="retreat.jpg", time=date(2022, 1, 5))
    news = News(
        id="n-000X01",
        news="Welcome @$000X01 to the lab!",
        time=date(2024, 2, 29),
        type=NewsType.newmember,
        related_members_ids=["$000X01"],
    )

    assert decode_photo(encode_photo(photo)) == photo
    assert encode_news(news)["type"] == "newmember"
    assert decode_news(encode_news(news)) == news


def test_enum_decoding_is_lenient():
    assert encode_enum(MemberRole, MemberRole.pi) == "pi"
    assert decode_enum(MemberRole, "pi") is MemberRole.pi
    assert decode_enum(NewsType, "bogus") is None
    assert decode_enum(NewsType, None) is None

    news = decode_news({"id": "n-x", "news": "hello", "time": "2024-01-01", "type": "bogus"})

    assert news.type is None


def test_dates_keep_the_calendar_day():
    assert encode_date(date(2024, 3, 1)) == "2024-03-01"
    assert encode_date(datetime(2024, 3, 1, 23, 59)) == "2024-03-01"
    assert encode_date(None) is None
    assert decode_date("2024-03-01") == date(2024, 3, 1)
    assert decode_date(None) is None


@pytest.fixture
def host_timezone(monkeypatch):
    def switch(name):
        monkeypatch.setenv("TZ", name)
        time.tzset()

    yield switch
    monkeypatch.undo()
    time.tzset()


@pytest.mark.skipif(not hasattr(time, "tzset"), reason="time.tzset is POSIX only")
@pytest.mark.parametrize("zone", ["UTC", "Pacific/Kiritimati", "Etc/GMT+12", "Etc/GMT-12", "America/Los_Angeles"])
def test_local_dates_are_stable_in_any_host_timezone(host_timezone, zone):
    host_timezone(zone)

    local_midnight = datetime(2024, 3, 1).astimezone()
    local_late_evening = datetime(2024, 3, 1, 23, 59).astimezone()

    assert encode_date(local_midnight) == "2024-03-01"
    assert encode_date(local_late_evening) == "2024-03-01"
    assert encode_date(datetime(2024, 3, 1)) == "2024-03-01"
    assert decode_date(encode_date(date(2024, 3, 1))) == date(2024, 3, 1)
