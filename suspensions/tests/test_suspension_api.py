import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

pytestmark = pytest.mark.django_db


def make_user(**kwargs):
    U = get_user_model()
    return U.objects.create(**kwargs)


class TestSuspensionAPI:
    def setup_method(self):
        self.client = APIClient()
        self.user = make_user()
        self.moderator = make_user(is_staff=True)

    def _suspend(self, **extra):
        self.client.force_authenticate(self.moderator)
        data = {"user_id": str(self.user.id), "reason": "harassment", "type": "temporary", "duration_hours": 24}
        data.update(extra)
        return self.client.post("/api/v1/suspensions/", data=data, format="json")

    def test_me_not_suspended(self):
        self.client.force_authenticate(self.user)
        res = self.client.get("/api/v1/suspensions/me/")
        assert res.status_code == 200
        assert res.json() == {"suspended": False, "can_appeal": False, "suspensions": []}

    def test_create_requires_moderator(self):
        self.client.force_authenticate(self.user)
        res = self.client.post("/api/v1/suspensions/", data={"user_id": str(self.user.id), "reason": "x", "type": "warning"}, format="json")
        assert res.status_code == 403

    def test_create_and_me(self):
        res = self._suspend()
        assert res.status_code == 201
        body = res.json()
        assert body["type"] == "temporary"
        assert body["ban_type"] == "content_visible"
        assert body["moderator_id"] == str(self.moderator.id)

        self.client.force_authenticate(self.user)
        me = self.client.get("/api/v1/suspensions/me/").json()
        assert me["suspended"] is True
        assert me["can_appeal"] is True
        assert me["suspensions"][0]["id"] == body["id"]

    def test_temporary_without_duration_rejected(self):
        res = self._suspend(duration_hours=None)
        assert res.status_code == 400

    def test_review_remove(self):
        sid = self._suspend().json()["id"]
        res = self.client.post(f"/api/v1/suspensions/{sid}/review/", data={"action": "remove", "reason": "mistake"}, format="json")
        assert res.status_code == 200
        assert res.json()["is_active"] is False

    def test_review_unknown(self):
        self.client.force_authenticate(self.moderator)
        res = self.client.post("/api/v1/suspensions/00000000-0000-0000-0000-000000000000/review/", data={"action": "remove"}, format="json")
        assert res.status_code == 404

    def test_stats(self):
        self._suspend()
        res = self.client.get("/api/v1/suspensions/stats/")
        assert res.status_code == 200
        assert res.json()["active"] == 1
