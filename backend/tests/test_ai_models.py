"""
Tests for the persona catalog.

Validates:
1. Required fields and workspace checks on create
2. Defaults for optional columns
3. Workspace-scoped personas win over global ones
"""
from companion.crud import ai_model as ai_model_crud
from companion.models import AIModel


def add_model(db_session, name, workspace_id=None, is_active=True, **fields):
    db_model = AIModel(
        workspace_id=workspace_id,
        name=name,
        role=fields.pop("role", "Companion"),
        personality=fields.pop("personality", "caring"),
        is_active=is_active,
        **fields,
    )
    db_session.add(db_model)
    db_session.commit()
    return db_model


class TestCreateAIModel:

    def test_creates_with_defaults(self, client, workspace):
        response = client.post("/api/ai-models", json={
            "workspace_id": workspace.id,
            "name": "Luna",
            "role": "Romantic Companion",
            "personality": "romantic, caring",
        })

        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Luna"
        assert body["topics"] == []
        assert body["system_prompt"] == ""
        assert body["custom_triggers"] == []
        assert body["config"] == {}
        assert body["is_active"] is True
        assert body["predefined"] is False

    def test_required_fields(self, client, workspace):
        response = client.post("/api/ai-models", json={"workspace_id": workspace.id, "name": "Luna"})

        assert response.status_code == 400
        assert response.json() == {"error": "Name, role, and personality are required"}

    def test_unknown_workspace(self, client, db_session):
        response = client.post("/api/ai-models", json={
            "workspace_id": "does-not-exist",
            "name": "Luna",
            "role": "Companion",
            "personality": "caring",
        })

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid workspace"}
        assert db_session.query(AIModel).count() == 0

    def test_global_model_without_workspace(self, client):
        response = client.post("/api/ai-models", json={
            "name": "Zoe",
            "role": "Flirty Crush",
            "personality": "playful",
            "predefined": True,
            "topics": ["flirting"],
        })
        assert response.status_code == 201
        assert response.json()["workspace_id"] is None


class TestResolveAIModel:

    def test_workspace_row_preferred_over_global(self, db_session, workspace):
        add_model(db_session, "Luna", system_prompt="global")
        scoped = add_model(db_session, "Luna", workspace_id=workspace.id, system_prompt="scoped")
        add_model(db_session, "Luna", system_prompt="global again")

        resolved = ai_model_crud.resolve_ai_model(db_session, workspace.id, name="Luna")
        assert resolved.id == scoped.id

    def test_falls_back_to_global(self, db_session, workspace):
        global_model = add_model(db_session, "Aria")
        assert ai_model_crud.resolve_ai_model(db_session, workspace.id, name="Aria").id == global_model.id

    def test_other_workspaces_and_inactive_rows_are_invisible(self, db_session, workspace):
        hidden = add_model(db_session, "Maya", workspace_id="other-workspace")
        inactive = add_model(db_session, "Maya", workspace_id=workspace.id, is_active=False)

        assert ai_model_crud.resolve_ai_model(db_session, workspace.id, model_id=hidden.id) is None
        assert ai_model_crud.resolve_ai_model(db_session, workspace.id, model_id=inactive.id) is None

    def test_list_orders_workspace_models_first(self, client, db_session, workspace):
        add_model(db_session, "Global")
        add_model(db_session, "Mine", workspace_id=workspace.id)

        response = client.get("/api/ai-models", params={"workspaceId": workspace.id})

        assert [m["name"] for m in response.json()] == ["Mine", "Global"]

    def test_get_by_id(self, client, db_session, workspace):
        model = add_model(db_session, "Mine", workspace_id=workspace.id)

        assert client.get(f"/api/ai-models/{model.id}", params={"workspaceId": workspace.id}).status_code == 200
        missing = client.get("/api/ai-models/nope", params={"workspaceId": workspace.id})
        assert missing.status_code == 404
        assert missing.json() == {"error": "AI model not found"}


class TestAIModelAccess:

    def test_requires_token(self, anonymous_client, workspace):
        response = anonymous_client.get("/api/ai-models", params={"workspaceId": workspace.id})
        assert response.status_code == 401

    def test_cannot_list_another_users_personas(self, client, other_headers, db_session, workspace):
        add_model(db_session, "Mine", workspace_id=workspace.id)
        response = client.get("/api/ai-models", headers=other_headers, params={"workspaceId": workspace.id})
        assert response.status_code == 403

    def test_cannot_create_in_another_users_workspace(self, client, other_headers, db_session, workspace):
        response = client.post("/api/ai-models", headers=other_headers, json={
            "workspace_id": workspace.id,
            "name": "Luna",
            "role": "Companion",
            "personality": "caring",
        })
        assert response.status_code == 403
        assert db_session.query(AIModel).count() == 0
