import copy
import logging
from datetime import date

import pytest

from labdb.core.exceptions import DuplicateIdError, StructuralValidationError
from labdb.models import News, NewsType, Person, Photo, Publication
from labdb.store.database import Database
from labdb.store.ids import scramble
from labdb.store.mutator import DatabaseMutator, ReconcileState, open_store


class StubGateway:
    def __init__(self, data=None):
        self.data = copy.deepcopy(data or {})
        self.writes = []

    async def load_collection(self, name):
        return copy.deepcopy(self.data.get(name))

    async def write_collection(self, name, data):
        self.writes.append(name)
        self.data[name] = copy.deepcopy(dict(data))


def temp_graph():
    return {
        "persons": {
            "name": "persons",
            "docs": [
                {
                    "id": ".A",
                    "firstname": "Ada",
                    "lastname": "Lovelace",
                    "memberInfo": {"role": "phd", "whenJoined": "2021-09-01", "selectedPubIds": [".B"]},
                }
            ],
        },
        "publications": {
            "name": "publications",
            "docs": [{"id": ".B", "title": "Notes", "authorIds": [".A"], "time": "2023-01-01"}],
        },
    }


@pytest.mark.asyncio
async def test_temporary_ids_are_replaced_consistently(caplog):
    gateway = StubGateway(temp_graph())

    with caplog.at_level(logging.INFO, logger="labdb.store.mutator"):
        store = await open_store(gateway)

    person_id = "$" + scramble(1)
    pub_id = "+" + scramble(1)
    persons = await store.db.get_many_persons()
    pubs = await store.db.get_many_publications()

    assert store.state is ReconcileState.SETTLED
    assert [p.id for p in persons] == [person_id]
    assert persons[0].member_info.selected_pub_ids == [pub_id]
    assert [p.id for p in pubs] == [pub_id]
    assert pubs[0].author_ids == [person_id]
    assert store.reassigned == {"persons": {".A": person_id}, "publications": {".B": pub_id}}
    assert store.dirty
    assert f"Assigned permanent ID='{person_id}' for person with temporary ID='.A'" in caplog.text
    assert (await store.db.validate()).ok


@pytest.mark.asyncio
async def test_fixed_ids_reuse_gaps():
    data = temp_graph()
    data["persons"]["docs"].append({"id": "$" + scramble(3), "firstname": "Alan", "lastname": "Turing"})

    store = await open_store(StubGateway(data))

    assert store.reassigned["persons"] == {".A": "$" + scramble(2)}


@pytest.mark.asyncio
async def test_news_and_photos_are_fixed_up():
    data = temp_graph()
    data["photos"] = {
        "name": "photos",
        "docs": [{"id": ".photo", "title": "Lab", "width": 10, "height": 10, "image": "lab.jpg", "time": "2023-01-01"}],
    }
    data["news"] = {
        "name": "news",
        "docs": [
            {"id": "n-" + scramble(1), "news": "Paper accepted", "time": "2023-02-01", "relatedPubIds": [".B"]},
            {"id": ".news", "news": "Welcome", "time": "2021-09-01", "relatedMembersIds": [".A", "$outside"]},
        ],
    }

    store = await open_store(StubGateway(data))

    news = await store.db.get_many_news()
    assert news[0].id == "n-" + scramble(1)
    assert news[0].related_pub_ids == ["+" + scramble(1)]
    assert news[1].id == "n-" + scramble(2)
    assert news[1].related_members_ids == ["$" + scramble(1), "$outside"]
    assert [p.id for p in await store.db.get_many_photos()] == ["p-" + scramble(1)]
    assert store.reassigned["photos"] == {".photo": "p-" + scramble(1)}


@pytest.mark.asyncio
async def test_persist_is_idempotent():
    gateway = StubGateway(temp_graph())
    store = await open_store(gateway)

    assert await store.persist() is True
    assert len(gateway.writes) == 4
    assert await store.persist() is False
    assert len(gateway.writes) == 4

    reopened = await open_store(StubGateway(gateway.data))
    assert not reopened.dirty
    assert reopened.reassigned == {}
    assert await reopened.persist() is False
    assert await reopened.persist(force=True) is True


@pytest.mark.asyncio
async def test_create_operations_allocate_prefixed_ids():
    gateway = StubGateway()
    store = await open_store(gateway)
    assert not store.dirty

    person = await store.create_person(Person(firstname="Grace", lastname="Hopper"))
    pub = await store.create_publication(Publication(title="COBOL", author_ids=[person.id], time=date(1959, 5, 28)))
    photo = await store.create_photo(Photo(title="Lab", width=4, height=3, image="lab.jpg", time=date(2024, 1, 1)))
    news = await store.create_news(
        News(news=f"New paper by @{person.id}", time=date(2024, 1, 2), type=NewsType.publication, related_pub_ids=[pub.id])
    )

    assert person.id == "$" + scramble(1)
    assert pub.id == "+" + scramble(1)
    assert photo.id == "p-" + scramble(1)
    assert news.id == "n-" + scramble(1)
    assert store.dirty
    assert (await store.db.get_person(person.id)).full_name == "Grace Hopper"

    second = await store.create_person(Person(firstname="Alan", lastname="Turing"))
    assert second.id == "$" + scramble(2)

    assert await store.persist() is True
    assert [doc["id"] for doc in gateway.data["persons"]["docs"]] == [person.id, second.id]
    assert gateway.data["news"]["docs"][0]["type"] == "publication"


@pytest.mark.asyncio
async def test_create_with_explicit_id():
    store = await open_store(StubGateway())

    person = await store.create_person(Person(id="$custom", firstname="Ada", lastname="Lovelace"))

    assert person.id == "$custom"
    with pytest.raises(DuplicateIdError):
        await store.create_person(Person(id="$custom", firstname="Ada", lastname="Byron"))


@pytest.mark.asyncio
async def test_explicit_numbered_id_is_not_handed_out_again():
    store = await open_store(StubGateway())

    chosen = await store.create_person(Person(id="$" + scramble(1), firstname="Ada", lastname="Lovelace"))
    allocated = await store.create_person(Person(firstname="Alan", lastname="Turing"))
    far = await store.create_person(Person(id="$custom", firstname="Grace", lastname="Hopper"))
    below_far = await store.create_person(Person(firstname="Edsger", lastname="Dijkstra"))

    assert chosen.id == "$" + scramble(1)
    assert allocated.id == "$" + scramble(2)
    assert far.id == "$custom"
    assert below_far.id not in {chosen.id, allocated.id, far.id}
    assert len(await store.db.get_many_persons()) == 4


@pytest.mark.asyncio
async def test_rejected_create_does_not_consume_an_id():
    store = await open_store(StubGateway())

    with pytest.raises(StructuralValidationError):
        await store.create_photo(Photo(title="Bad", width=0, height=3, image="bad.jpg", time=date(2024, 1, 1)))
    assert not store.dirty

    photo = await store.create_photo(Photo(title="Good", width=4, height=3, image="good.jpg", time=date(2024, 1, 1)))
    assert photo.id == "p-" + scramble(1)


@pytest.mark.asyncio
async def test_news_mentions_follow_reassigned_ids():
    data = temp_graph()
    data["news"] = {
        "name": "news",
        "docs": [
            {
                "id": "n-" + scramble(1),
                "news": "Welcome @.A!",
                "details": "Ask @.A or @$outside about the paper.",
                "time": "2021-09-01",
            }
        ],
    }

    store = await open_store(StubGateway(data))

    person_id = "$" + scramble(1)
    news = await store.db.get_news("n-" + scramble(1))
    assert news.news == f"Welcome @{person_id}!"
    assert news.details == f"Ask @{person_id} or @$outside about the paper."
    assert store.reassigned["persons"] == {".A": person_id}
    assert "news" not in store.reassigned


def test_mutator_requires_running_loop():
    with pytest.raises(RuntimeError):
        DatabaseMutator(Database(StubGateway()))
