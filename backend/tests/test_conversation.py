"""
Tests for sending messages.

Validates:
1. "new" chat ids always create a fresh chat titled from the message
2. The completion call receives the composed system prompt
3. Image generation re-hosts the generated image before storing the message
4. Failures abort without storing a message
"""
import asyncio
from types import SimpleNamespace

import pytest

from companion.crud import chat as chat_crud
from companion.models import Chat, Message
from companion.services.completion import CompletionClient, CompletionError, EMPTY_COMPLETION
from companion.services.conversation import chat_title, with_uploaded_files
from companion.services.persona import compose_system_prompt


def send(client, workspace, ai_model, **overrides):
    payload = {
        "message": "Hello",
        "userId": "user-1",
        "workspaceId": workspace.id,
        "AIModelId": ai_model.id,
        "chatId": "new",
        "systemPrompt": "You are Maya.",
    }
    payload.update(overrides)
    return client.post("/api/messages", json=payload)


class TestHelpers:

    def test_title_is_first_50_characters(self):
        assert chat_title("x" * 80) == "x" * 50
        assert chat_title("") == "New Chat"

    def test_uploaded_files_appended_on_new_lines(self):
        assert with_uploaded_files("Look", ["https://a/1.png", "https://a/2.png"]) == "Look\nhttps://a/1.png\nhttps://a/2.png"
        assert with_uploaded_files("", ["https://a/1.png"]) == "https://a/1.png"
        assert with_uploaded_files("Look", None) == "Look"


class TestSendMessage:

    def test_new_chat_message_and_completion(self, client, completion, db_session, workspace, ai_model):
        response = send(client, workspace, ai_model)

        assert response.status_code == 200
        body = response.json()

        chats = db_session.query(Chat).all()
        assert len(chats) == 1
        assert chats[0].id == body["chatId"]
        assert chats[0].title == "Hello"

        db_session.refresh(workspace)
        assert completion.calls == [(compose_system_prompt(workspace, "You are Maya."), "Hello")]

        messages = db_session.query(Message).all()
        assert len(messages) == 1
        assert messages[0].prompt == "Hello"
        assert messages[0].response == "Hi there!"
        assert body["message"]["response"] == "Hi there!"

    def test_new_twice_creates_two_chats(self, client, db_session, workspace, ai_model):
        first = send(client, workspace, ai_model).json()["chatId"]
        second = send(client, workspace, ai_model).json()["chatId"]

        assert first != second
        assert db_session.query(Chat).count() == 2

    def test_existing_chat_is_reused(self, client, db_session, workspace, ai_model):
        chat_id = send(client, workspace, ai_model).json()["chatId"]
        response = send(client, workspace, ai_model, chatId=chat_id, message="Again")

        assert response.json()["chatId"] == chat_id
        assert db_session.query(Chat).count() == 1
        assert db_session.query(Message).filter(Message.chat_id == chat_id).count() == 2

    def test_missing_chat_id_creates_chat(self, client, db_session, workspace, ai_model):
        response = send(client, workspace, ai_model, chatId=None)
        assert response.status_code == 200
        assert db_session.query(Chat).count() == 1

    def test_persona_prompt_used_when_none_supplied(self, client, completion, db_session, workspace, ai_model):
        send(client, workspace, ai_model, systemPrompt=None)

        system_prompt, _ = completion.calls[0]
        assert system_prompt.endswith("\nYou are Maya, a loyal best friend.")

    def test_uploaded_files_reach_prompt_and_title(self, client, completion, workspace, ai_model):
        send(client, workspace, ai_model, message="", uploadedFiles=["https://files.test/a.png"])
        assert completion.calls[0][1] == "https://files.test/a.png"

    def test_empty_message_rejected(self, client, completion, db_session, workspace, ai_model):
        response = send(client, workspace, ai_model, message="   ")

        assert response.status_code == 400
        assert response.json() == {"error": "Message is required"}
        assert db_session.query(Chat).count() == 0
        assert completion.calls == []

    def test_missing_required_field(self, client, workspace):
        response = client.post("/api/messages", json={"message": "Hi", "workspaceId": workspace.id})
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"

    def test_completion_failure_keeps_chat_but_no_message(self, client, completion, db_session, workspace, ai_model):
        completion.error = "upstream unavailable"
        response = send(client, workspace, ai_model)

        assert response.status_code == 500
        assert "upstream unavailable" in response.json()["error"]
        assert db_session.query(Chat).count() == 1
        assert db_session.query(Message).count() == 0

    def test_chat_creation_failure_stops_before_completion(self, client, completion, db_session, workspace, ai_model, monkeypatch):
        def fail(*args, **kwargs):
            raise RuntimeError("insert into chats failed")

        monkeypatch.setattr(chat_crud, "create_chat", fail)
        response = send(client, workspace, ai_model)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to create chat."}
        assert db_session.query(Chat).count() == 0
        assert db_session.query(Message).count() == 0
        assert completion.calls == []

    def test_message_insert_failure_keeps_chat(self, client, completion, db_session, workspace, ai_model, monkeypatch):
        def fail(*args, **kwargs):
            raise RuntimeError("insert into messages failed")

        monkeypatch.setattr(chat_crud, "create_message", fail)
        response = send(client, workspace, ai_model)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to insert message."}
        assert db_session.query(Chat).count() == 1
        assert db_session.query(Message).count() == 0
        assert len(completion.calls) == 1

    def test_supplied_image_url_skips_completion(self, client, completion, db_session, workspace, ai_model):
        send(client, workspace, ai_model, imageUrl="https://storage.test/images/x.png")

        assert completion.calls == []
        assert db_session.query(Message).one().response == "https://storage.test/images/x.png"

    def test_image_generation_is_rehosted(self, client, completion, storage, db_session, workspace, ai_model):
        response = send(client, workspace, ai_model, message="Draw a cat", isValidForImageGen=True)

        assert response.status_code == 200
        assert completion.image_prompts == ["Draw a cat"]
        assert completion.calls == []

        stored_path = storage.uploads[0][0]
        assert db_session.query(Message).one().response == f"https://storage.test/images/{stored_path}"


class TestCompletionRoute:

    def test_text_completion(self, client, completion, workspace):
        response = client.post("/api/ai", json={
            "prompt": "Hi",
            "userId": "user-1",
            "workspaceId": workspace.id,
            "system_prompt": "Be brief.",
        })

        assert response.status_code == 200
        assert response.json() == {"type": "text", "result": "Hi there!"}
        assert completion.calls[0][0] == "Name: Alex\nInterests: music, travel\nBe brief."

    def test_unknown_workspace_uses_fallback_context(self, client, completion):
        client.post("/api/ai", json={"prompt": "Hi", "workspaceId": "missing", "system_prompt": "P"})
        assert completion.calls[0][0] == "No user context available.\nP"

    def test_image_request_returns_generated_url(self, client, completion):
        response = client.post("/api/ai", json={"prompt": "A cat", "isValidForImageGen": True})
        assert response.json() == {"type": "image", "result": completion.image_url}

    def test_failure_is_internal_error(self, client, completion, workspace):
        completion.error = "quota exceeded"
        response = client.post("/api/ai", json={"prompt": "Hi", "workspaceId": workspace.id})

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Internal server error"
        assert "quota exceeded" in body["details"]


class TestConversationAccess:

    def test_messages_require_token(self, anonymous_client, completion, db_session, workspace, ai_model):
        response = send(anonymous_client, workspace, ai_model)

        assert response.status_code == 401
        assert db_session.query(Chat).count() == 0
        assert completion.calls == []

    def test_cannot_send_as_another_user(self, client, other_headers, completion, db_session, workspace, ai_model):
        response = client.post("/api/messages", headers=other_headers, json={
            "message": "Hello",
            "userId": "user-1",
            "workspaceId": workspace.id,
            "chatId": "new",
        })

        assert response.status_code == 403
        assert db_session.query(Chat).count() == 0
        assert completion.calls == []

    def test_cannot_use_another_users_workspace(self, client, other_headers, completion, workspace, ai_model):
        response = client.post("/api/messages", headers=other_headers, json={
            "message": "Hello",
            "userId": "user-2",
            "workspaceId": workspace.id,
            "chatId": "new",
        })

        assert response.status_code == 403
        assert response.json() == {"error": "Workspace belongs to another user"}
        assert completion.calls == []

    def test_cannot_post_into_another_users_chat(self, client, other_headers, db_session, workspace, ai_model):
        chat_id = send(client, workspace, ai_model).json()["chatId"]

        response = client.post("/api/messages", headers=other_headers, json={
            "message": "Hijack",
            "userId": "user-2",
            "workspaceId": "ws-2",
            "chatId": chat_id,
        })

        assert response.status_code == 404
        assert db_session.query(Message).filter(Message.chat_id == chat_id).count() == 1

    def test_completion_requires_token(self, anonymous_client, completion):
        response = anonymous_client.post("/api/ai", json={"prompt": "Hi"})
        assert response.status_code == 401
        assert completion.calls == []

    def test_completion_hides_other_profiles(self, client, other_headers, completion, workspace):
        response = client.post("/api/ai", headers=other_headers, json={"prompt": "Hi", "workspaceId": workspace.id})
        assert response.status_code == 403
        assert completion.calls == []


class FakeChatModel:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.messages = None

    async def ainvoke(self, messages):
        if self.error:
            raise self.error
        self.messages = messages
        return SimpleNamespace(content=self.content)


class TestCompletionClient:

    def test_sends_system_and_user_message(self):
        model = FakeChatModel(content="  Hello!  ")
        result = asyncio.run(CompletionClient(model=model).complete("System", "User"))

        assert result == "Hello!"
        assert [m.type for m in model.messages] == ["system", "human"]
        assert [m.content for m in model.messages] == ["System", "User"]

    def test_empty_output(self):
        result = asyncio.run(CompletionClient(model=FakeChatModel(content="")).complete("S", "U"))
        assert result == EMPTY_COMPLETION

    def test_upstream_error(self):
        client = CompletionClient(model=FakeChatModel(error=RuntimeError("boom")))
        with pytest.raises(CompletionError):
            asyncio.run(client.complete("S", "U"))
