import uuid
from datetime import timedelta

import pytest

from moodflix.db import ConversationNotFound, ConversationRepository, session_scope
from moodflix.services.models import Message

from fakes import make_movie


@pytest.fixture
def repository() -> ConversationRepository:
    return ConversationRepository()


def test_create_then_get_returns_empty_conversation(session_factory, repository):
    with session_scope(session_factory) as session:
        created = repository.create(session)

    with session_scope(session_factory) as session:
        loaded = repository.get(session, created.id)

    assert loaded.id == created.id
    assert loaded.messages == []
    assert loaded.created_at.tzinfo is not None


def test_get_with_unknown_or_malformed_id_returns_none(session_factory, repository):
    with session_scope(session_factory) as session:
        assert repository.get(session, uuid.uuid4()) is None
        assert repository.get(session, "definitely-not-a-uuid") is None
        assert repository.get(session, None) is None


def test_append_keeps_order_and_movies(session_factory, repository):
    movie = make_movie(13, "Forrest Gump", 1994, ["Drama"])
    with session_scope(session_factory) as session:
        conversation = repository.create(session)
        first = repository.append_message(session, conversation.id, Message(role="user", content="Tom Hanks movies"))
        second = repository.append_message(
            session,
            str(conversation.id),
            Message(role="assistant", content="Try this one", movies=(movie,)),
        )

    assert (first, second) == (0, 1)
    with session_scope(session_factory) as session:
        loaded = repository.get(session, conversation.id)

    assert [message.role for message in loaded.messages] == ["user", "assistant"]
    assert loaded.messages[1].movies[0].title == "Forrest Gump"
    assert loaded.messages[1].movies[0].genres == ["Drama"]
    assert loaded.updated_at == loaded.messages[1].timestamp


def test_append_to_missing_conversation_raises(session_factory, repository):
    with pytest.raises(ConversationNotFound):
        with session_scope(session_factory) as session:
            repository.append_message(session, uuid.uuid4(), Message(role="user", content="hi"))


def test_save_overwrites_so_last_write_wins(session_factory, repository):
    with session_scope(session_factory) as session:
        conversation = repository.create(session)

    with session_scope(session_factory) as session:
        turn_a = repository.get(session, conversation.id)
    with session_scope(session_factory) as session:
        turn_b = repository.get(session, conversation.id)

    turn_a.append(Message(role="user", content="first"))
    turn_b.append(Message(role="user", content="second"))
    turn_b.append(Message(role="assistant", content="reply to second"))

    with session_scope(session_factory) as session:
        repository.save(session, turn_a)
    with session_scope(session_factory) as session:
        repository.save(session, turn_b)

    with session_scope(session_factory) as session:
        loaded = repository.get(session, conversation.id)
    assert [message.content for message in loaded.messages] == ["second", "reply to second"]


def test_save_inserts_unknown_conversation(session_factory, repository):
    with session_scope(session_factory) as session:
        created = repository.create(session)
        template = repository.get(session, created.id)

    template.id = uuid.uuid4()
    template.append(Message(role="user", content="hello"))
    with session_scope(session_factory) as session:
        repository.save(session, template)
    with session_scope(session_factory) as session:
        assert repository.get(session, template.id).messages[0].content == "hello"


def test_delete_reports_whether_anything_was_removed(session_factory, repository):
    with session_scope(session_factory) as session:
        conversation = repository.create(session)
        repository.append_message(session, conversation.id, Message(role="user", content="hi"))

    with session_scope(session_factory) as session:
        assert repository.delete(session, conversation.id) is True
    with session_scope(session_factory) as session:
        assert repository.get(session, conversation.id) is None
        assert repository.delete(session, conversation.id) is False
        assert repository.delete(session, "garbage") is False


def test_messages_are_ordered_by_position_not_timestamp(session_factory, repository):
    with session_scope(session_factory) as session:
        conversation = repository.create(session)
        later = Message(role="user", content="sent first")
        earlier = Message(role="assistant", content="sent second", timestamp=later.timestamp - timedelta(minutes=5))
        repository.append_message(session, conversation.id, later)
        repository.append_message(session, conversation.id, earlier)

    with session_scope(session_factory) as session:
        loaded = repository.get(session, conversation.id)
    assert [message.content for message in loaded.messages] == ["sent first", "sent second"]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"role": "system", "content": "nope"},
        {"role": "user", "content": ""},
        {"role": "user", "content": "with movies", "movies": (make_movie(1, "A", 2000, []),)},
    ],
)
def test_invalid_messages_are_rejected(kwargs):
    with pytest.raises(ValueError):
        Message(**kwargs)
