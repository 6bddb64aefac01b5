"""
Tests for the workspace onboarding wizard.

Validates:
1. Step 1 creates the workspace and moves on to step 2
2. Each step writes only its own fields and advances current_step
3. Completion is idempotent and never resets progress
"""
import pytest

from companion.models import Workspace
from companion.services import onboarding
from companion.services.onboarding import OnboardingError, OnboardingStep


class TestOnboardingService:

    def test_start_workspace(self, db_session, user):
        workspace = onboarding.start_workspace(db_session, user.id, "  Alex's space ")

        assert workspace.name == "Alex's space"
        assert workspace.current_step == 2
        assert workspace.onboarding_complete is False

    def test_name_is_required(self, db_session, user):
        with pytest.raises(OnboardingError) as exc_info:
            onboarding.start_workspace(db_session, user.id, "   ")
        assert exc_info.value.message == "Workspace name is required."
        assert exc_info.value.status_code == 400

    def test_step_writes_only_owned_fields(self, db_session, user):
        workspace = onboarding.start_workspace(db_session, user.id, "Alex")

        workspace = onboarding.submit_step(db_session, workspace, OnboardingStep.PREFERENCES, {
            "preferred_communication": ["chat"],
            "privacy_level": "high",
            "memory_enabled": True,
            "interests": ["not-this-step"],
        })

        assert workspace.current_step == 3
        assert workspace.preferred_communication == ["chat"]
        assert workspace.privacy_level == "high"
        assert workspace.memory_enabled is True
        assert workspace.interests is None

    def test_profile_step_completes_onboarding(self, db_session, user):
        workspace = onboarding.start_workspace(db_session, user.id, "Alex")
        workspace = onboarding.submit_step(db_session, workspace, OnboardingStep.PROFILE, {
            "personality_type": "introvert",
            "age": 31,
            "gender": "male",
        })

        assert workspace.current_step == 5
        assert workspace.onboarding_complete is True

    def test_lookup_by_user_when_no_workspace_id(self, db_session, user):
        created = onboarding.start_workspace(db_session, user.id, "Alex")
        assert onboarding.get_workspace(db_session, user_id=user.id).id == created.id

    def test_lookup_needs_an_identifier(self, db_session):
        with pytest.raises(OnboardingError):
            onboarding.get_workspace(db_session)

    def test_complete_is_idempotent(self, db_session, user):
        workspace = onboarding.start_workspace(db_session, user.id, "Alex")

        first = onboarding.mark_onboarding_complete(db_session, workspace_id=workspace.id)
        second = onboarding.mark_onboarding_complete(db_session, user_id=user.id)

        assert first.id == second.id
        assert second.onboarding_complete is True
        assert second.current_step == 5


class TestOnboardingRoutes:

    def test_full_wizard(self, client, db_session, user):
        created = client.post("/api/workspaces", json={"userId": user.id, "name": "Alex"})
        assert created.status_code == 201
        workspace_id = created.json()["id"]
        assert created.json()["current_step"] == 2

        base = f"/api/workspaces/{workspace_id}/onboarding"
        step2 = client.put(f"{base}/preferences", json={"preferred_communication": ["chat", "voice"], "privacy_level": "medium"})
        assert step2.json()["current_step"] == 3

        step3 = client.put(f"{base}/interests", json={"interests": ["music"], "goals": ["learning"]})
        assert step3.json()["current_step"] == 4

        step4 = client.put(f"{base}/profile", json={"personality_type": "ambivert", "age": 27, "gender": "female"})
        assert step4.json()["current_step"] == 5
        assert step4.json()["onboarding_complete"] is True

        done = client.post("/api/workspaces/complete", json={"workspaceId": workspace_id})
        assert done.status_code == 200

        workspace = db_session.get(Workspace, workspace_id)
        assert workspace.interests == ["music"]
        assert workspace.goals == ["learning"]
        assert workspace.age == 27

    def test_create_requires_name(self, client, user):
        response = client.post("/api/workspaces", json={"userId": user.id, "name": ""})
        assert response.status_code == 400
        assert response.json() == {"error": "Workspace name is required."}

    def test_rename_existing_workspace(self, client, workspace):
        response = client.put(f"/api/workspaces/{workspace.id}/onboarding/name", json={"name": "New name"})
        assert response.json()["name"] == "New name"
        assert response.json()["current_step"] == 2

    def test_current_reports_step_for_prefill(self, client, workspace):
        response = client.get("/api/workspaces/current", params={"userId": "user-1"})
        assert response.status_code == 200
        assert response.json()["id"] == workspace.id
        assert response.json()["current_step"] == 5

    def test_current_defaults_to_caller(self, client, workspace):
        response = client.get("/api/workspaces/current")
        assert response.json()["id"] == workspace.id

    def test_current_without_workspace(self, client):
        response = client.get("/api/workspaces/current")
        assert response.status_code == 404

    def test_unknown_workspace(self, client):
        response = client.put("/api/workspaces/nope/onboarding/interests", json={"interests": []})
        assert response.status_code == 404
        assert response.json() == {"error": "Workspace not found"}

    def test_complete_unknown_workspace(self, client):
        response = client.post("/api/workspaces/complete", json={"workspaceId": "nope"})
        assert response.status_code == 404


class TestOnboardingAccess:

    def test_requires_token(self, anonymous_client, user):
        response = anonymous_client.post("/api/workspaces", json={"userId": user.id, "name": "Alex"})
        assert response.status_code == 401

    def test_cannot_create_for_another_user(self, client, other_headers, db_session, user):
        response = client.post("/api/workspaces", headers=other_headers, json={"userId": user.id, "name": "Alex"})

        assert response.status_code == 403
        assert db_session.query(Workspace).count() == 0

    def test_cannot_edit_another_users_workspace(self, client, other_headers, db_session, workspace):
        response = client.put(
            f"/api/workspaces/{workspace.id}/onboarding/profile",
            headers=other_headers,
            json={"age": 40},
        )

        assert response.status_code == 403
        db_session.refresh(workspace)
        assert workspace.age is None

    def test_cannot_read_another_users_workspace(self, client, other_headers, workspace):
        response = client.get("/api/workspaces/current", headers=other_headers, params={"workspaceId": workspace.id})
        assert response.status_code == 403

    def test_cannot_complete_another_users_workspace(self, client, other_headers, workspace):
        response = client.post("/api/workspaces/complete", headers=other_headers, json={"workspaceId": workspace.id})
        assert response.status_code == 403
