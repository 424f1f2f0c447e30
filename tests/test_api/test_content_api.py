"""API tests for skills, projects, experience, profile and contact messages."""
import pytest


SKILL = {"name": "Python", "category": "Languages", "proficiency": 90}

PROFILE = {
    "name": "Site Owner",
    "designation": "Software Engineer",
    "bio": "I build web backends.",
    "email": "owner@example.com",
    "resumeUrl": "https://example.com/cv.pdf",
    "socialLinks": {"github": "https://github.com/owner", "twitter": ""},
}


@pytest.mark.api
class TestSkills:
    """Skill CRUD"""

    def test_create_skill(self, test_client, admin_headers):
        response = test_client.post("/api/skills", json=SKILL, headers=admin_headers)

        assert response.status_code == 201
        skill = response.json()["skill"]
        assert skill["id"]
        assert skill["name"] == "Python"
        assert skill["order"] == 0
        assert "createdAt" in skill

    def test_create_skill_out_of_range(self, test_client, admin_headers):
        response = test_client.post(
            "/api/skills", json={**SKILL, "proficiency": 150}, headers=admin_headers
        )

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert [v["field"] for v in error["details"]["violations"]] == ["proficiency"]
        assert test_client.get("/api/skills").json()["skills"] == []

    def test_create_skill_requires_admin(self, test_client, reader_headers):
        assert test_client.post("/api/skills", json=SKILL).status_code == 401
        assert (
            test_client.post("/api/skills", json=SKILL, headers=reader_headers).status_code
            == 403
        )

    def test_list_orders_by_category_then_order(self, test_client, admin_headers):
        for body in (
            {"name": "Docker", "category": "Tools", "proficiency": 70, "order": 0},
            {"name": "Rust", "category": "Languages", "proficiency": 40, "order": 2},
            {"name": "Python", "category": "Languages", "proficiency": 90, "order": 1},
        ):
            test_client.post("/api/skills", json=body, headers=admin_headers)

        names = [s["name"] for s in test_client.get("/api/skills").json()["skills"]]
        assert names == ["Python", "Rust", "Docker"]

    def test_update_and_delete(self, test_client, admin_headers):
        skill_id = test_client.post(
            "/api/skills", json=SKILL, headers=admin_headers
        ).json()["skill"]["id"]

        updated = test_client.put(
            f"/api/skills/{skill_id}", json={"proficiency": 95}, headers=admin_headers
        )
        assert updated.status_code == 200
        assert updated.json()["skill"]["proficiency"] == 95
        assert updated.json()["skill"]["name"] == "Python"

        deleted = test_client.delete(f"/api/skills/{skill_id}", headers=admin_headers)
        assert deleted.json() == {"message": "Skill deleted successfully"}
        assert test_client.get(f"/api/skills/{skill_id}").status_code == 404

    def test_update_rejects_null_required_field(self, test_client, admin_headers):
        skill_id = test_client.post(
            "/api/skills", json=SKILL, headers=admin_headers
        ).json()["skill"]["id"]

        response = test_client.put(
            f"/api/skills/{skill_id}", json={"name": None}, headers=admin_headers
        )
        assert response.status_code == 400

    def test_update_missing_skill(self, test_client, admin_headers):
        response = test_client.put(
            "/api/skills/does-not-exist", json={"order": 1}, headers=admin_headers
        )
        assert response.status_code == 404


@pytest.mark.api
class TestProjects:
    """Project CRUD and slug lookups"""

    def test_create_and_get_by_slug(self, test_client, admin_headers, sample_project):
        response = test_client.post(
            "/api/projects", json=sample_project, headers=admin_headers
        )

        assert response.status_code == 201
        project = response.json()["project"]
        assert project["liveLink"] == "https://example.com"
        assert project["repoLink"] is None

        fetched = test_client.get("/api/projects/portfolio-api").json()["project"]
        assert fetched["id"] == project["id"]
        assert fetched["technologies"] == ["python", "fastapi", "sqlmodel"]

    def test_duplicate_slug_conflicts(self, test_client, admin_headers, sample_project):
        test_client.post("/api/projects", json=sample_project, headers=admin_headers)
        response = test_client.post(
            "/api/projects", json=sample_project, headers=admin_headers
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CONFLICT"

    def test_featured_filter(self, test_client, admin_headers, sample_project):
        test_client.post("/api/projects", json=sample_project, headers=admin_headers)
        test_client.post(
            "/api/projects",
            json={**sample_project, "slug": "side-project", "featured": False},
            headers=admin_headers,
        )

        all_projects = test_client.get("/api/projects").json()["projects"]
        featured = test_client.get("/api/projects?featured=true").json()["projects"]

        assert [p["slug"] for p in all_projects] == ["portfolio-api", "side-project"]
        assert [p["slug"] for p in featured] == ["portfolio-api"]

    def test_missing_project(self, test_client):
        assert test_client.get("/api/projects/nope").status_code == 404

    def test_update_and_delete(self, test_client, admin_headers, sample_project):
        project_id = test_client.post(
            "/api/projects", json=sample_project, headers=admin_headers
        ).json()["project"]["id"]

        response = test_client.put(
            f"/api/projects/{project_id}",
            json={"liveLink": "", "challenges": "Scaling"},
            headers=admin_headers,
        )
        project = response.json()["project"]
        assert project["liveLink"] is None
        assert project["challenges"] == "Scaling"
        assert project["title"] == "Portfolio API"

        deleted = test_client.delete(
            f"/api/projects/{project_id}", headers=admin_headers
        )
        assert deleted.status_code == 200
        assert test_client.get("/api/projects").json()["projects"] == []


@pytest.mark.api
class TestExperience:
    """Experience CRUD"""

    def test_create_and_order(self, test_client, admin_headers):
        past = {
            "company": "Old Co",
            "role": "Developer",
            "startDate": "2018-01-01T00:00:00Z",
            "endDate": "2020-06-30T00:00:00Z",
            "description": "Maintained things",
        }
        current = {
            "company": "New Co",
            "role": "Engineer",
            "startDate": "2020-07-01T00:00:00Z",
            "description": "Builds things",
            "current": True,
        }
        created = test_client.post(
            "/api/experience", json=past, headers=admin_headers
        )
        assert created.status_code == 201
        assert created.json()["experience"]["endDate"].startswith("2020-06-30")
        test_client.post("/api/experience", json=current, headers=admin_headers)

        experiences = test_client.get("/api/experience").json()["experiences"]
        assert [e["company"] for e in experiences] == ["New Co", "Old Co"]
        assert experiences[0]["endDate"] is None

    def test_get_update_delete(self, test_client, admin_headers):
        experience_id = test_client.post(
            "/api/experience",
            json={
                "company": "Acme",
                "role": "Engineer",
                "startDate": "2021-01-01T00:00:00",
                "description": "Work",
            },
            headers=admin_headers,
        ).json()["experience"]["id"]

        response = test_client.put(
            f"/api/experience/{experience_id}",
            json={"role": "Senior Engineer"},
            headers=admin_headers,
        )
        assert response.json()["experience"]["role"] == "Senior Engineer"

        fetched = test_client.get(f"/api/experience/{experience_id}").json()
        assert fetched["experience"]["company"] == "Acme"

        test_client.delete(f"/api/experience/{experience_id}", headers=admin_headers)
        assert test_client.get(f"/api/experience/{experience_id}").status_code == 404


@pytest.mark.api
class TestProfile:
    """The single site profile"""

    def test_get_before_create(self, test_client):
        response = test_client.get("/api/profile")
        assert response.status_code == 404

    def test_update_before_create(self, test_client, admin_headers):
        response = test_client.put(
            "/api/profile", json={"bio": "New bio"}, headers=admin_headers
        )
        assert response.status_code == 404

    def test_create_once(self, test_client, admin_headers):
        created = test_client.post("/api/profile", json=PROFILE, headers=admin_headers)

        assert created.status_code == 201
        profile = created.json()["profile"]
        assert profile["socialLinks"] == {"github": "https://github.com/owner"}
        assert profile["photoUrl"] is None

        again = test_client.post("/api/profile", json=PROFILE, headers=admin_headers)
        assert again.status_code == 400
        assert again.json()["error"]["code"] == "CONFLICT"

        fetched = test_client.get("/api/profile").json()["profile"]
        assert fetched["id"] == profile["id"]

    def test_update_keeps_unsent_fields(self, test_client, admin_headers):
        test_client.post("/api/profile", json=PROFILE, headers=admin_headers)

        response = test_client.put(
            "/api/profile",
            json={"bio": "Updated bio", "socialLinks": {"linkedin": "https://linkedin.com/in/owner"}},
            headers=admin_headers,
        )

        profile = response.json()["profile"]
        assert profile["bio"] == "Updated bio"
        assert profile["resumeUrl"] == "https://example.com/cv.pdf"
        assert profile["socialLinks"] == {"linkedin": "https://linkedin.com/in/owner"}

    def test_invalid_email_rejected(self, test_client, admin_headers):
        response = test_client.post(
            "/api/profile", json={**PROFILE, "email": "nope"}, headers=admin_headers
        )
        assert response.status_code == 400
        assert test_client.get("/api/profile").status_code == 404


@pytest.mark.api
class TestContact:
    """Contact form and inbox"""

    MESSAGE = {
        "name": "Visitor",
        "email": "visitor@example.com",
        "subject": "Hello",
        "message": "I would like to talk about a project.",
    }

    def test_submit_is_public(self, test_client):
        response = test_client.post("/api/contact", json=self.MESSAGE)

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Message sent successfully"
        assert body["id"]

    def test_short_message_rejected(self, test_client, admin_headers):
        response = test_client.post(
            "/api/contact", json={**self.MESSAGE, "message": "too short"}
        )

        assert response.status_code == 400
        violations = response.json()["error"]["details"]["violations"]
        assert violations[0]["field"] == "message"
        contacts = test_client.get("/api/contact", headers=admin_headers).json()
        assert contacts["contacts"] == []

    def test_inbox_requires_admin(self, test_client, reader_headers):
        assert test_client.get("/api/contact").status_code == 401
        assert test_client.get("/api/contact", headers=reader_headers).status_code == 403

    def test_mark_read_and_unread_filter(self, test_client, admin_headers):
        first = test_client.post("/api/contact", json=self.MESSAGE).json()["id"]
        test_client.post("/api/contact", json=self.MESSAGE)

        response = test_client.put(f"/api/contact/{first}/read", headers=admin_headers)
        assert response.json()["contact"]["read"] is True

        unread = test_client.get("/api/contact?unread=true", headers=admin_headers)
        everything = test_client.get("/api/contact", headers=admin_headers)
        assert len(unread.json()["contacts"]) == 1
        assert len(everything.json()["contacts"]) == 2

        stats = test_client.get("/api/stats", headers=admin_headers).json()["stats"]
        assert stats["messages"] == 1
        assert stats["totalMessages"] == 2

    def test_delete(self, test_client, admin_headers):
        contact_id = test_client.post("/api/contact", json=self.MESSAGE).json()["id"]

        response = test_client.delete(f"/api/contact/{contact_id}", headers=admin_headers)

        assert response.json() == {"message": "Message deleted successfully"}
        assert test_client.get("/api/contact", headers=admin_headers).json()["contacts"] == []
