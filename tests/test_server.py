"""HTTP API tests with in-memory collaborators.

The intake routes run against MockBackend (from test_wizard) and a real
LocalDocumentStorage rooted in a temp directory.  The staff routes run
against FakeRepository, an in-memory stand-in for IntakeRepository.  No
database is touched: ``get_db`` is overridden with a dummy session.
"""

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from intake_db.models.enums import IntakeStatus
from intake_rulesets.constants import BUSINESS_TAX_TYPE
from intake_server.app import create_app
from intake_server.config import ServerSettings
from intake_server.dependencies import get_backend, get_db, get_repository, get_storage
from intake_server.storage import LocalDocumentStorage

from test_wizard import TOKEN, MockBackend

API = "/api/v1"
ADMIN_KEY = "staff-secret"
ADMIN = {"X-Admin-Key": ADMIN_KEY}


# =====================================================================
# Mock infrastructure
# =====================================================================


class FakeRepository:
    """In-memory IntakeRepository replacement keyed by token."""

    def __init__(self):
        self.rows: dict[str, SimpleNamespace] = {}

    async def create_intake(self, db, *, client_id, tax_year, data=None):
        now = datetime.now(timezone.utc)
        row = SimpleNamespace(
            token=f"tok-{len(self.rows) + 1}",
            client_id=client_id,
            tax_year=tax_year,
            status=IntakeStatus.NOT_STARTED,
            data=dict(data or {}),
            revision=0,
            created_at=now,
            updated_at=now,
            submitted_at=None,
            reviewed_at=None,
        )
        self.rows[row.token] = row
        return row

    async def get_by_token(self, db, token):
        return self.rows.get(token)

    async def list_by_client(self, db, client_id, *, limit=20, offset=0):
        rows = [r for r in self.rows.values() if r.client_id == client_id]
        rows.sort(key=lambda r: (r.tax_year, r.created_at), reverse=True)
        return rows[offset:offset + limit]

    async def mark_reviewed(self, db, intake):
        now = datetime.now(timezone.utc)
        intake.status = IntakeStatus.REVIEWED
        intake.reviewed_at = now
        intake.updated_at = now
        return intake


async def _no_db():
    yield None


@pytest.fixture
def backend():
    b = MockBackend()
    b.add_intake()
    return b


@pytest.fixture
def repo():
    return FakeRepository()


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def client(backend, repo, upload_dir):
    app = create_app(ServerSettings(admin_api_key=ADMIN_KEY, upload_dir=str(upload_dir)))
    storage = LocalDocumentStorage(upload_dir, max_bytes=1024)
    app.dependency_overrides[get_backend] = lambda: backend
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_db] = _no_db
    app.dependency_overrides[get_repository] = lambda: repo
    with TestClient(app) as c:
        yield c


# =====================================================================
# Client routes
# =====================================================================


class TestStepRoutes:
    """GET step, back and continue."""

    def test_first_step(self, client):
        resp = client.get(f"{API}/intake/{TOKEN}/step")
        assert resp.status_code == 200
        body = resp.json()
        assert body["type"] == "step"
        assert body["step_index"] == 0
        assert body["step_count"] == 6
        assert body["section"]["section_id"] == "tax_situation"
        assert body["section"]["render_mode"] == "fields_visible"
        assert body["action_label"] == "Continue"

    def test_step_index_is_clamped(self, client):
        body = client.get(f"{API}/intake/{TOKEN}/step", params={"step_index": 99}).json()
        assert body["step_index"] == 5
        assert body["is_last"] is True
        assert body["action_label"] == "Submit"

    def test_unknown_token(self, client):
        resp = client.get(f"{API}/intake/nope/step")
        assert resp.status_code == 404
        assert resp.json() == {"detail": "Resource not found"}

    def test_negative_step_index_rejected(self, client):
        resp = client.get(f"{API}/intake/{TOKEN}/step", params={"step_index": -1})
        assert resp.status_code == 422

    def test_back(self, client):
        body = client.post(f"{API}/intake/{TOKEN}/back", json={"step_index": 2}).json()
        assert body["section"]["section_id"] == "profile"

    def test_continue(self, client):
        body = client.post(f"{API}/intake/{TOKEN}/continue", json={"step_index": 0}).json()
        assert body["type"] == "step"
        assert body["section"]["section_id"] == "profile"

    def test_continue_on_last_step_submits(self, client, backend):
        resp = client.post(f"{API}/intake/{TOKEN}/continue", json={"step_index": 5})
        assert resp.status_code == 200
        assert resp.json() == {"type": "submitted", "success": True, "error": None}
        assert backend.intakes[TOKEN].status == "submitted"


class TestAnswerRoutes:
    """POST answers coerces, stores and re-clamps."""

    def test_business_selection(self, client, backend):
        resp = client.post(
            f"{API}/intake/{TOKEN}/answers",
            json={"step_index": 0, "answers": {"taxType": BUSINESS_TAX_TYPE}},
        )
        body = resp.json()
        assert resp.status_code == 200
        assert body["step_count"] == 10
        assert "home_office" in body["active_sections"]
        assert body["save_status"] == "saved"
        assert backend.intakes[TOKEN].answers == {"taxType": BUSINESS_TAX_TYPE}

    def test_values_are_coerced(self, client, backend):
        resp = client.post(
            f"{API}/intake/{TOKEN}/answers",
            json={
                "step_index": 3,
                "answers": {"hasIncomeDocs": "yes", "rentalIncome": "$1,500", "w2Count": "2"},
            },
        )
        body = resp.json()
        assert backend.intakes[TOKEN].answers == {
            "hasIncomeDocs": True, "rentalIncome": 1500.0, "w2Count": 2,
        }
        assert "rental_expenses" in body["active_sections"]
        assert body["section"]["render_mode"] == "fields_visible"

    def test_zero_rental_income_hides_rental_section(self, client):
        body = client.post(
            f"{API}/intake/{TOKEN}/answers",
            json={"step_index": 3, "answers": {"rentalIncome": "0.00"}},
        ).json()
        assert "rental_expenses" not in body["active_sections"]

    def test_leaving_business_path_clamps(self, client, backend):
        backend.add_intake(answers={"taxType": BUSINESS_TAX_TYPE}, revision=1)
        body = client.post(
            f"{API}/intake/{TOKEN}/answers",
            json={"step_index": 9, "answers": {"taxType": "Personal Only"}},
        ).json()
        assert body["step_count"] == 6
        assert body["step_index"] == 5
        assert body["section"]["section_id"] == "other_info"

    def test_invalid_value_rejects_whole_request(self, client, backend):
        resp = client.post(
            f"{API}/intake/{TOKEN}/answers",
            json={"step_index": 0, "answers": {"firstName": "Ada", "filingStatus": "single"}},
        )
        assert resp.status_code == 400
        assert backend.persisted == []

    @pytest.mark.parametrize(
        "answers",
        [{"interestIncome": "1e30"}, {"w2Count": "nan"}, {"w2Count": "inf"}],
    )
    def test_out_of_range_numbers_are_bad_requests(self, client, backend, answers):
        backend.add_intake(answers={"hasIncomeDocs": True})
        resp = client.post(
            f"{API}/intake/{TOKEN}/answers", json={"step_index": 3, "answers": answers},
        )
        assert resp.status_code == 400
        assert backend.persisted == []

    def test_unknown_key(self, client):
        resp = client.post(
            f"{API}/intake/{TOKEN}/answers",
            json={"step_index": 0, "answers": {"favouriteColour": "blue"}},
        )
        assert resp.status_code == 400

    def test_save_failure_is_reported_not_raised(self, client, backend):
        backend.fail_persist = True
        resp = client.post(
            f"{API}/intake/{TOKEN}/answers",
            json={"step_index": 1, "answers": {"firstName": "Ada"}},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["save_status"] == "error"
        assert body["save_error"] == "storage offline"


class TestFileRoutes:
    """Uploads land on disk under the token namespace."""

    def _upload(self, client, name="w2.pdf", content=b"%PDF-1.7"):
        return client.post(
            f"{API}/intake/{TOKEN}/files/income",
            params={"step_index": 3},
            files={"file": (name, content, "application/pdf")},
        )

    def test_upload_and_delete(self, client, backend, upload_dir):
        backend.add_intake(answers={"hasIncomeDocs": True})

        resp = self._upload(client)
        assert resp.status_code == 200
        files = resp.json()["section"]["files"]
        assert len(files) == 1
        path = files[0]["path"]
        assert path.startswith(f"{TOKEN}/income/")
        assert path.endswith("-w2.pdf")
        assert (upload_dir / path).read_bytes() == b"%PDF-1.7"
        assert backend.intakes[TOKEN].answers["income_files"][0]["path"] == path

        resp = client.delete(
            f"{API}/intake/{TOKEN}/files", params={"path": path, "step_index": 3},
        )
        assert resp.status_code == 200
        assert resp.json()["section"]["files"] == []
        assert not (upload_dir / path).exists()
        assert backend.intakes[TOKEN].answers["income_files"] == []

    def test_upload_to_skipped_section(self, client, backend):
        backend.add_intake(answers={"hasIncomeDocs": False})
        assert self._upload(client).status_code == 400

    def test_disallowed_extension(self, client, backend):
        backend.add_intake(answers={"hasIncomeDocs": True})
        assert self._upload(client, name="payload.exe").status_code == 400

    def test_too_large(self, client, backend):
        backend.add_intake(answers={"hasIncomeDocs": True})
        assert self._upload(client, content=b"x" * 2048).status_code == 413

    def test_body_limit_enforced_before_storage(self, backend, upload_dir):
        # Storage would accept 1024 bytes; the server limit is lower
        app = create_app(ServerSettings(max_upload_bytes=512, upload_dir=str(upload_dir)))
        app.dependency_overrides[get_backend] = lambda: backend
        app.dependency_overrides[get_storage] = lambda: LocalDocumentStorage(upload_dir, max_bytes=1024)
        backend.add_intake(answers={"hasIncomeDocs": True})

        with TestClient(app) as c:
            assert self._upload(c, content=b"x" * 800).status_code == 413
            assert self._upload(c, content=b"x" * 512).status_code == 200
        files = backend.intakes[TOKEN].answers["income_files"]
        assert [f["size"] for f in files] == [512]

    def test_delete_foreign_path(self, client, backend):
        backend.add_intake(answers={"hasIncomeDocs": True})
        resp = client.delete(
            f"{API}/intake/{TOKEN}/files",
            params={"path": "someone-else/income/1-w2.pdf", "step_index": 3},
        )
        assert resp.status_code == 404


# =====================================================================
# Reference routes
# =====================================================================


class TestReferenceRoutes:

    def test_sections(self, client):
        body = client.get(f"{API}/reference/sections").json()
        assert [s["id"] for s in body][:2] == ["tax_situation", "profile"]
        assert len(body) == 11

    def test_field_types(self, client):
        body = client.get(f"{API}/reference/field-types").json()
        assert "repeatable-group" in body


# =====================================================================
# Staff routes
# =====================================================================


class TestAdminRoutes:
    """X-Admin-Key protected intake management."""

    def test_missing_key(self, client):
        resp = client.post(f"{API}/admin/intakes", json={"client_id": "c1", "tax_year": 2025})
        assert resp.status_code == 401

    def test_wrong_key(self, client):
        resp = client.post(
            f"{API}/admin/intakes",
            json={"client_id": "c1", "tax_year": 2025},
            headers={"X-Admin-Key": "guess"},
        )
        assert resp.status_code == 403

    def test_create_and_get(self, client):
        resp = client.post(
            f"{API}/admin/intakes", json={"client_id": "c1", "tax_year": 2025}, headers=ADMIN,
        )
        assert resp.status_code == 201
        info = resp.json()
        assert info["status"] == "not_started"
        assert info["revision"] == 0

        got = client.get(f"{API}/admin/intakes/{info['token']}", headers=ADMIN).json()
        assert got["client_id"] == "c1"
        assert got["tax_year"] == 2025

    def test_unknown_intake(self, client):
        resp = client.get(f"{API}/admin/intakes/nope", headers=ADMIN)
        assert resp.status_code == 404

    def test_review_sheet(self, client, repo):
        token = client.post(
            f"{API}/admin/intakes", json={"client_id": "c1", "tax_year": 2025}, headers=ADMIN,
        ).json()["token"]
        repo.rows[token].data = {"firstName": "Ada", "hasDependents": False}

        body = client.get(f"{API}/admin/intakes/{token}/review", headers=ADMIN).json()
        rows = body["rows"]
        assert rows[0] == {
            "section_id": "tax_situation", "label": "TAX SITUATION", "value": "", "is_header": True,
        }
        assert {"section_id": "profile", "label": "First Name", "value": "Ada", "is_header": False} in rows
        assert {
            "section_id": "dependents",
            "label": "Status",
            "value": "Skipped (User selected No)",
            "is_header": False,
        } in rows

    def test_mark_reviewed_requires_submission(self, client, repo):
        token = client.post(
            f"{API}/admin/intakes", json={"client_id": "c1", "tax_year": 2025}, headers=ADMIN,
        ).json()["token"]

        assert client.post(f"{API}/admin/intakes/{token}/reviewed", headers=ADMIN).status_code == 400

        repo.rows[token].status = "submitted"
        repo.rows[token].submitted_at = datetime.now(timezone.utc)
        resp = client.post(f"{API}/admin/intakes/{token}/reviewed", headers=ADMIN)
        assert resp.status_code == 200
        assert resp.json()["status"] == "reviewed"
        assert resp.json()["reviewed_at"] is not None

    def test_list_client_intakes(self, client):
        for client_id, year in [("c1", 2024), ("c2", 2025), ("c1", 2025)]:
            client.post(
                f"{API}/admin/intakes", json={"client_id": client_id, "tax_year": year}, headers=ADMIN,
            )

        resp = client.get(f"{API}/admin/clients/c1/intakes", headers=ADMIN)
        assert resp.status_code == 200
        assert [(i["client_id"], i["tax_year"]) for i in resp.json()] == [("c1", 2025), ("c1", 2024)]

        page = client.get(
            f"{API}/admin/clients/c1/intakes", params={"limit": 1, "offset": 1}, headers=ADMIN,
        ).json()
        assert [i["tax_year"] for i in page] == [2024]

        assert client.get(f"{API}/admin/clients/nobody/intakes", headers=ADMIN).json() == []
        assert client.get(f"{API}/admin/clients/c1/intakes", params={"limit": 0}, headers=ADMIN).status_code == 422
