import httpx

from messenger_inbox.services.messenger_service import MessengerService


def conversation_row(conversation_id, page_id="PAGE1", last_timestamp="2025-10-21T10:00:00+00:00", **extra):
    row = {
        "id": conversation_id,
        "page_id": page_id,
        "customer_id": conversation_id.rsplit("-", 1)[-1],
        "customer_name": "User",
        "customer_avatar": None,
        "last_message": "hello",
        "last_timestamp": last_timestamp,
        "status": "OPEN",
        "assigned_agent_id": None,
        "unread_count": 0,
    }
    row.update(extra)
    return row


def message_row(message_id, conversation_id, timestamp, text="hi", **extra):
    row = {
        "id": message_id,
        "conversation_id": conversation_id,
        "sender_id": "USER42",
        "sender_name": "User USER42",
        "text": text,
        "timestamp": timestamp,
        "is_incoming": True,
        "is_read": False,
    }
    row.update(extra)
    return row


# ============ Conversations ============

def test_list_conversations_ordered(client, fake_supabase):
    fake_supabase.tables["conversations"] = [
        conversation_row("conv-PAGE1-A", last_timestamp="2025-10-21T10:00:00+00:00"),
        conversation_row("conv-PAGE1-B", last_timestamp="2025-10-21T12:00:00+00:00"),
        conversation_row("conv-PAGE2-C", page_id="PAGE2", last_timestamp="2025-10-21T11:00:00+00:00"),
    ]

    r = client.get("/api/conversations")
    assert r.status_code == 200
    assert [row["id"] for row in r.json()] == ["conv-PAGE1-B", "conv-PAGE2-C", "conv-PAGE1-A"]


def test_list_conversations_filtered_by_page(client, fake_supabase):
    fake_supabase.tables["conversations"] = [
        conversation_row("conv-PAGE1-A"),
        conversation_row("conv-PAGE2-C", page_id="PAGE2"),
    ]

    r = client.get("/api/conversations", params={"pageId": "PAGE2"})
    assert r.status_code == 200
    assert [row["id"] for row in r.json()] == ["conv-PAGE2-C"]


def test_list_conversations_without_ordering_column(client, fake_supabase):
    fake_supabase.tables["conversations"] = [conversation_row("conv-PAGE1-A"), conversation_row("conv-PAGE1-B")]
    fake_supabase.missing_columns["conversations"] = {"last_timestamp"}

    r = client.get("/api/conversations")
    assert r.status_code == 200
    assert sorted(row["id"] for row in r.json()) == ["conv-PAGE1-A", "conv-PAGE1-B"]
    assert fake_supabase.calls == [("conversations", "select"), ("conversations", "select")]


def test_list_conversations_without_table(client, fake_supabase):
    fake_supabase.missing_tables.add("conversations")

    r = client.get("/api/conversations")
    assert r.status_code == 200
    assert r.json() == []


def test_list_conversations_store_error(client, fake_supabase):
    fake_supabase.failures[("conversations", "select")] = "XX000"

    r = client.get("/api/conversations")
    assert r.status_code == 500
    assert r.json() == {"detail": "Failed to fetch conversations"}


def test_conversations_need_supabase(unconfigured_client):
    r = unconfigured_client.get("/api/conversations")
    assert r.status_code == 503


# ============ Messages ============

def test_list_messages_sorted_oldest_first(client, fake_supabase):
    fake_supabase.tables["messages"] = [
        message_row("m2", "conv-PAGE1-USER42", "2025-10-21T10:05:00+00:00", text="second"),
        message_row("m1", "conv-PAGE1-USER42", "2025-10-21T10:00:00.500+00:00", text="first"),
        message_row("m3", "conv-PAGE1-USER42", "2025-10-21T10:10:00Z", text="third"),
        message_row("x1", "conv-PAGE1-OTHER", "2025-10-21T09:00:00+00:00"),
    ]

    r = client.get("/api/conversations/conv-PAGE1-USER42/messages")
    assert r.status_code == 200
    assert [row["text"] for row in r.json()] == ["first", "second", "third"]


def test_list_messages_without_table(client, fake_supabase):
    fake_supabase.missing_tables.add("messages")

    r = client.get("/api/conversations/conv-PAGE1-USER42/messages")
    assert r.status_code == 200
    assert r.json() == []


def test_list_messages_store_error(client, fake_supabase):
    fake_supabase.failures[("messages", "select")] = "XX000"

    r = client.get("/api/conversations/conv-PAGE1-USER42/messages")
    assert r.status_code == 500
    assert r.json() == {"detail": "Failed to fetch messages"}


def test_send_message_defaults(client, fake_supabase):
    fake_supabase.tables["conversations"] = [conversation_row("conv-PAGE1-USER42")]

    r = client.post("/api/messages", json={"conversationId": "conv-PAGE1-USER42", "text": "How can we help?"})
    assert r.status_code == 200
    body = r.json()
    assert body["id"].startswith("msg-")
    assert body["sender_id"] == "agent"
    assert body["sender_name"] == "Agent"
    assert body["is_incoming"] is False
    assert body["is_read"] is True
    assert body["conversation_id"] == "conv-PAGE1-USER42"

    assert fake_supabase.tables["messages"][0]["id"] == body["id"]
    conversation = fake_supabase.tables["conversations"][0]
    assert conversation["last_message"] == "How can we help?"
    assert conversation["last_timestamp"] == body["timestamp"]


def test_send_incoming_message_snake_case(client, fake_supabase):
    r = client.post("/api/messages", json={
        "conversation_id": "conv-PAGE1-USER42",
        "text": "typed by agent on behalf of customer",
        "sender_id": "USER42",
        "sender_name": "Jane",
        "is_incoming": True,
    })
    assert r.status_code == 200
    body = r.json()
    assert body["sender_id"] == "USER42"
    assert body["sender_name"] == "Jane"
    assert body["is_incoming"] is True
    assert body["is_read"] is False


def test_send_message_missing_fields(client, fake_supabase):
    r = client.post("/api/messages", json={"conversationId": "conv-PAGE1-USER42"})
    assert r.status_code == 400
    assert r.json() == {"detail": "Missing required fields"}

    r = client.post("/api/messages", json={"text": "hello"})
    assert r.status_code == 400
    assert fake_supabase.calls == []


def test_send_message_without_table_is_simulated(client, fake_supabase):
    fake_supabase.missing_tables.add("messages")

    r = client.post("/api/messages", json={"conversationId": "conv-PAGE1-USER42", "text": "hello"})
    assert r.status_code == 200
    body = r.json()
    assert body["simulated"] is True
    assert body["message"] == "Table does not exist, message simulated"
    assert body["text"] == "hello"
    assert body["sender_id"] == "agent"


def test_send_message_conversation_update_failure_is_ignored(client, fake_supabase):
    fake_supabase.failures[("conversations", "update")] = "XX000"

    r = client.post("/api/messages", json={"conversationId": "conv-PAGE1-USER42", "text": "hello"})
    assert r.status_code == 200
    assert len(fake_supabase.tables["messages"]) == 1


def test_send_message_store_error(client, fake_supabase):
    fake_supabase.failures[("messages", "insert")] = "XX000"

    r = client.post("/api/messages", json={"conversationId": "conv-PAGE1-USER42", "text": "hello"})
    assert r.status_code == 500
    assert r.json() == {"detail": "Failed to send message"}


def test_send_message_relays_to_messenger(client, fake_supabase):
    fake_supabase.tables["conversations"] = [conversation_row("conv-PAGE1-USER42", customer_id="USER42")]
    sent = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(request)
        return httpx.Response(200, json={"recipient_id": "USER42", "message_id": "m_out"})

    client.app.state.messenger_service = MessengerService(
        page_access_token="page-token", transport=httpx.MockTransport(handler)
    )

    r = client.post("/api/messages", json={"conversationId": "conv-PAGE1-USER42", "text": "On it!"})
    assert r.status_code == 200
    assert len(sent) == 1
    assert sent[0].url.path.endswith("/me/messages")


def test_send_message_delivery_failure_is_ignored(client, fake_supabase):
    fake_supabase.tables["conversations"] = [conversation_row("conv-PAGE1-USER42", customer_id="USER42")]

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": {"message": "(#100) No matching user found"}})

    client.app.state.messenger_service = MessengerService(
        page_access_token="page-token", transport=httpx.MockTransport(handler)
    )

    r = client.post("/api/messages", json={"conversationId": "conv-PAGE1-USER42", "text": "On it!"})
    assert r.status_code == 200
    assert len(fake_supabase.tables["messages"]) == 1


# ============ Conversation updates ============

def test_update_conversation(client, fake_supabase):
    fake_supabase.tables["conversations"] = [conversation_row("conv-PAGE1-USER42", unread_count=3)]

    r = client.put("/api/conversations/conv-PAGE1-USER42", json={
        "status": "RESOLVED",
        "assigned_agent_id": "agent-7",
        "unread_count": 0,
    })
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "RESOLVED"
    assert body["assigned_agent_id"] == "agent-7"
    assert body["unread_count"] == 0
    assert fake_supabase.tables["conversations"][0]["status"] == "RESOLVED"


def test_update_conversation_accepts_free_form_status(client, fake_supabase):
    fake_supabase.tables["conversations"] = [conversation_row("conv-PAGE1-USER42")]

    r = client.put("/api/conversations/conv-PAGE1-USER42", json={"status": "WAITING_ON_CUSTOMER"})
    assert r.status_code == 200
    assert r.json()["status"] == "WAITING_ON_CUSTOMER"


def test_update_conversation_cannot_change_id(client, fake_supabase):
    fake_supabase.tables["conversations"] = [conversation_row("conv-PAGE1-USER42")]

    r = client.put("/api/conversations/conv-PAGE1-USER42", json={"id": "conv-other", "status": "CLOSED"})
    assert r.status_code == 200
    assert r.json()["id"] == "conv-PAGE1-USER42"
    assert fake_supabase.tables["conversations"][0]["id"] == "conv-PAGE1-USER42"


def test_update_unknown_conversation(client, fake_supabase):
    r = client.put("/api/conversations/conv-nope", json={"status": "CLOSED"})
    assert r.status_code == 404


def test_update_conversation_without_table_is_simulated(client, fake_supabase):
    fake_supabase.missing_tables.add("conversations")

    r = client.put("/api/conversations/conv-PAGE1-USER42", json={"status": "CLOSED"})
    assert r.status_code == 200
    assert r.json() == {
        "id": "conv-PAGE1-USER42",
        "status": "CLOSED",
        "simulated": True,
        "message": "Table does not exist, update simulated",
    }


def test_update_conversation_store_error(client, fake_supabase):
    fake_supabase.tables["conversations"] = [conversation_row("conv-PAGE1-USER42")]
    fake_supabase.failures[("conversations", "update")] = "XX000"

    r = client.put("/api/conversations/conv-PAGE1-USER42", json={"status": "CLOSED"})
    assert r.status_code == 500
    assert r.json() == {"detail": "Failed to update conversation"}


def test_send_message_without_body(client, fake_supabase):
    r = client.post("/api/messages")
    assert r.status_code == 400
    assert r.json() == {"detail": "Missing required fields"}

    r = client.post("/api/messages", content=b"null", headers={"Content-Type": "application/json"})
    assert r.status_code == 400
    assert r.json() == {"detail": "Missing required fields"}
    assert fake_supabase.calls == []


def test_list_conversations_with_null_counters(client, fake_supabase):
    fake_supabase.tables["conversations"] = [
        conversation_row("conv-PAGE1-USER42", unread_count=None, status=None),
    ]

    r = client.get("/api/conversations")
    assert r.status_code == 200
    row = r.json()[0]
    assert row["unread_count"] is None
    assert row["status"] is None
