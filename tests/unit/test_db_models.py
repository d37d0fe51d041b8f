from __future__ import annotations

from direct_chat.infrastructure.db.models import MessageModel, UserModel


def test_message_table_server_defaults():
    columns = MessageModel.__table__.c

    assert str(columns.id.server_default.arg) == "gen_random_uuid()"
    assert str(columns.created_at.server_default.arg) == "now()"
    assert "text" in columns
    assert columns.delivered_at.nullable


def test_undelivered_index_is_partial():
    indexes = {ix.name: ix for ix in MessageModel.__table__.indexes}

    where = indexes["ix_messages_undelivered"].dialect_options["postgresql"]["where"]
    assert str(where) == "delivered_at IS NULL"
    assert [c.name for c in indexes["ix_messages_pair_timeline"].columns] == [
        "sender_id", "receiver_id", "created_at", "id",
    ]


def test_message_sender_references_users():
    [fk] = MessageModel.__table__.c.sender_id.foreign_keys

    assert fk.column.table is UserModel.__table__
