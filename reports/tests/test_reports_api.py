import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from whispers.models import Comment, Whisper

pytestmark = pytest.mark.django_db


def make_user(**kwargs):
    U = get_user_model()
    return U.objects.create(**kwargs)


class TestWhisperReportAPI:
    def setup_method(self):
        self.client = APIClient()
        self.reporter = make_user(display_name="reporter")
        self.author = make_user()
        self.moderator = make_user(is_staff=True)
        self.whisper = Whisper.objects.create(author=self.author, transcription="hello")
        self.url = f"/api/v1/reports/whispers/{self.whisper.id}/"

    def _report(self, user=None, **data):
        self.client.force_authenticate(user or self.reporter)
        payload = {"category": "harassment", "reason": "insults"}
        payload.update(data)
        return self.client.post(self.url, data=payload, format="json")

    def test_requires_auth(self):
        res = self.client.post(self.url, data={"category": "spam", "reason": "x"}, format="json")
        assert res.status_code in (401, 403)

    def test_report_success(self):
        res = self._report()
        assert res.status_code == 201

        body = res.json()
        assert body["whisper_id"] == str(self.whisper.id)
        assert body["whisper_user_id"] == str(self.author.id)
        assert body["reporter_display_name"] == "reporter"
        assert body["priority"] == "medium"
        assert body["status"] == "pending"

    def test_repeat_report_is_merged(self):
        first = self._report().json()
        second = self._report(reason="again").json()
        assert second["id"] == first["id"]
        assert second["priority"] == "high"

    def test_cannot_report_own_whisper(self):
        res = self._report(user=self.author)
        assert res.status_code == 400

    def test_invalid_category(self):
        res = self._report(category="gossip")
        assert res.status_code == 400

    def test_unknown_whisper(self):
        self.client.force_authenticate(self.reporter)
        res = self.client.post("/api/v1/reports/whispers/00000000-0000-0000-0000-000000000000/", data={"category": "spam", "reason": "x"}, format="json")
        assert res.status_code == 404

    def test_mine(self):
        self.client.force_authenticate(self.reporter)
        assert self.client.get(f"{self.url}mine/").json() == {"has_reported": False, "report_id": None}

        report_id = self._report().json()["id"]
        assert self.client.get(f"{self.url}mine/").json() == {"has_reported": True, "report_id": report_id}

    def test_moderation_endpoints_are_staff_only(self):
        self.client.force_authenticate(self.reporter)
        assert self.client.get("/api/v1/reports/").status_code == 403
        assert self.client.get("/api/v1/reports/stats/").status_code == 403

    def test_list_and_resolve(self):
        report_id = self._report().json()["id"]

        self.client.force_authenticate(self.moderator)
        listed = self.client.get("/api/v1/reports/", {"status": "pending"}).json()
        assert [r["id"] for r in listed] == [report_id]
        assert self.client.get(f"/api/v1/reports/{report_id}/").json()["id"] == report_id

        res = self.client.post(f"/api/v1/reports/{report_id}/resolve/", data={"action": "reject", "reason": "abusive"}, format="json")
        assert res.status_code == 200
        body = res.json()
        assert body["status"] == "resolved"
        assert body["resolution"]["action"] == "reject"
        assert body["resolution"]["moderator_id"] == str(self.moderator.id)
        assert Whisper.objects.get(id=self.whisper.id).is_deleted is True

        again = self.client.post(f"/api/v1/reports/{report_id}/resolve/", data={"action": "warn"}, format="json")
        assert again.status_code == 400

    def test_status_and_stats(self):
        report_id = self._report().json()["id"]

        self.client.force_authenticate(self.moderator)
        res = self.client.post(f"/api/v1/reports/{report_id}/status/", data={"status": "under_review"}, format="json")
        assert res.status_code == 200
        assert res.json()["status"] == "under_review"

        stats = self.client.get("/api/v1/reports/stats/").json()
        assert stats["whispers"]["total"] == 1
        assert stats["whispers"]["by_status"]["under_review"] == 1
        assert stats["comments"]["total"] == 0

        target = self.client.get(f"{self.url}stats/").json()
        assert target["total_reports"] == 1
        assert target["highest_priority"] == "medium"

    def test_retrieve_unknown(self):
        self.client.force_authenticate(self.moderator)
        assert self.client.get("/api/v1/reports/00000000-0000-0000-0000-000000000000/").status_code == 404

    def test_analytics_endpoints(self):
        report_id = self._report().json()["id"]
        assert self.client.get(f"/api/v1/reports/users/{self.reporter.id}/stats/").status_code == 403

        self.client.force_authenticate(self.moderator)
        self.client.post(f"/api/v1/reports/{report_id}/resolve/", data={"action": "flag"}, format="json")

        stats = self.client.get(f"/api/v1/reports/users/{self.reporter.id}/stats/").json()
        assert stats["total_reports"] == 1
        assert stats["most_reported_category"] == "harassment"
        assert stats["report_accuracy"] == 100.0

        history = self.client.get(f"/api/v1/reports/users/{self.reporter.id}/resolutions/").json()
        assert [r["id"] for r in history["reports_resolved"]] == [report_id]
        assert history["most_common_action"] == "flag"

        resolutions = self.client.get("/api/v1/reports/resolutions/stats/").json()
        assert resolutions["total_resolutions"] == 1
        assert resolutions["by_action"] == {"flag": 1}
        assert resolutions["moderator_performance"][str(self.moderator.id)]["total_resolutions"] == 1

        escalations = self.client.get("/api/v1/reports/escalations/stats/").json()
        assert escalations["total_escalations"] == 0
        assert escalations["most_escalated_categories"] == []
        assert escalations["by_violation_type"] == {"whisper_flagged": 1}


class TestCommentReportAPI:
    def setup_method(self):
        self.client = APIClient()
        self.author = make_user()
        self.commenter = make_user()
        self.moderator = make_user(is_staff=True)
        whisper = Whisper.objects.create(author=self.author)
        self.comment = Comment.objects.create(whisper=whisper, author=self.commenter, content="buy now")
        self.url = f"/api/v1/reports/comments/{self.comment.id}/"

    def test_three_reporters_hide_comment(self):
        for _ in range(3):
            self.client.force_authenticate(make_user())
            res = self.client.post(self.url, data={"category": "spam", "reason": "ad"}, format="json")
            assert res.status_code == 201

        self.comment.refresh_from_db()
        assert self.comment.is_hidden is True

    def test_mine_and_resolve(self):
        reporter = make_user()
        self.client.force_authenticate(reporter)
        report_id = self.client.post(self.url, data={"category": "spam", "reason": "ad"}, format="json").json()["id"]
        assert self.client.get(f"{self.url}mine/").json()["has_reported"] is True

        self.client.force_authenticate(self.moderator)
        listed = self.client.get("/api/v1/reports/comments/").json()
        assert [r["id"] for r in listed] == [report_id]

        res = self.client.post(f"/api/v1/reports/comment-reports/{report_id}/resolve/", data={"action": "delete"}, format="json")
        assert res.status_code == 200
        assert res.json()["status"] == "resolved"
        assert not Comment.objects.filter(id=self.comment.id).exists()
