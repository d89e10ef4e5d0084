import unittest

from fastapi.testclient import TestClient

from walkin_desk.errors import ApiError
from walkin_desk.main import app
from walkin_desk.routers import walkin
from walkin_desk.sessions import SessionRegistry

from support import FakeClient, backend_responses, make_workflow

STAFF = {"Authorization": "Bearer staff-token"}
OTHER_STAFF = {"Authorization": "Bearer someone-else"}


class TestWalkInApi(unittest.TestCase):
    """Exercises the session API against a scripted backend."""

    overrides = None

    def setUp(self):
        self.backend = FakeClient(backend_responses(self.overrides))
        self.registry = SessionRegistry()
        app.dependency_overrides[walkin.get_registry] = lambda: self.registry
        app.dependency_overrides[walkin.get_workflow_factory] = lambda: (lambda auth: make_workflow(self.backend))
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    def open_session(self):
        response = self.client.post("/api/v1/walkin/sessions", headers=STAFF)
        self.assertEqual(response.status_code, 201)
        return response.json()["sessionId"]

    def url(self, session_id, suffix=""):
        return f"/api/v1/walkin/sessions/{session_id}{suffix}"

    def compose(self, session_id):
        self.client.get(self.url(session_id, "/customers"), params={"term": "jane"}, headers=STAFF)
        response = self.client.put(self.url(session_id, "/customer"), json={"userId": 5}, headers=STAFF)
        self.assertEqual(response.status_code, 200)
        response = self.client.patch(
            self.url(session_id, "/selection"),
            json={"vehicleId": 21, "serviceId": 1, "mechanicId": 11},
            headers=STAFF,
        )
        self.assertEqual(response.status_code, 200)
        return response.json()


class TestSessions(TestWalkInApi):

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "healthy")

    def test_token_required(self):
        response = self.client.post("/api/v1/walkin/sessions")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(len(self.registry), 0)

    def test_open_session_view(self):
        session_id = self.open_session()

        view = self.client.get(self.url(session_id), headers=STAFF).json()

        self.assertEqual(view["state"], "Empty")
        self.assertEqual([s["serviceId"] for s in view["regularServices"]], [1, 2])
        self.assertEqual([s["serviceId"] for s in view["inspectionServices"]], [7, 8])
        self.assertEqual([m["status"] for m in view["mechanics"]], ["Available", "Busy"])
        self.assertEqual(view["composition"]["totalAmount"], 0)

    def test_session_belongs_to_its_token(self):
        session_id = self.open_session()
        response = self.client.get(self.url(session_id), headers=OTHER_STAFF)
        self.assertEqual(response.status_code, 404)

    def test_cancel(self):
        session_id = self.open_session()
        response = self.client.delete(self.url(session_id), headers=STAFF)
        self.assertEqual(response.status_code, 204)
        self.assertTrue(self.backend.closed)
        self.assertEqual(self.client.get(self.url(session_id), headers=STAFF).status_code, 404)


class TestComposition(TestWalkInApi):

    def test_blank_search_is_bad_request(self):
        session_id = self.open_session()
        response = self.client.get(self.url(session_id, "/customers"), params={"term": " "}, headers=STAFF)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Please enter a search term")

    def test_selection_updates_state_and_total(self):
        session_id = self.open_session()
        view = self.compose(session_id)
        self.assertEqual(view["state"], "Valid")
        self.assertEqual(view["composition"]["totalAmount"], 1500)

        view = self.client.patch(
            self.url(session_id, "/selection"), json={"includesInspection": True}, headers=STAFF
        ).json()
        self.assertEqual(view["state"], "PartiallyComposed")
        self.assertIn("inspectionTypeId", view["errors"])

        view = self.client.patch(
            self.url(session_id, "/selection"), json={"inspectionId": 7}, headers=STAFF
        ).json()
        self.assertEqual(view["state"], "Valid")
        self.assertEqual(view["composition"]["totalAmount"], 2300)

        view = self.client.patch(
            self.url(session_id, "/selection"), json={"serviceId": None}, headers=STAFF
        ).json()
        self.assertIsNone(view["composition"]["service"])
        self.assertEqual(view["composition"]["totalAmount"], 800)

    def test_busy_mechanic_is_bad_request(self):
        session_id = self.open_session()
        response = self.client.patch(self.url(session_id, "/selection"), json={"mechanicId": 12}, headers=STAFF)
        self.assertEqual(response.status_code, 400)

    def test_rejected_selection_changes_nothing(self):
        session_id = self.open_session()
        response = self.client.patch(
            self.url(session_id, "/selection"), json={"serviceId": 1, "mechanicId": 12}, headers=STAFF
        )
        self.assertEqual(response.status_code, 400)

        view = self.client.get(self.url(session_id), headers=STAFF).json()
        self.assertIsNone(view["composition"]["service"])
        self.assertIsNone(view["composition"]["mechanic"])
        self.assertEqual(view["state"], "Empty")

    def test_invalid_customer_fields(self):
        session_id = self.open_session()
        response = self.client.post(
            self.url(session_id, "/customers"),
            json={"name": "J", "email": "bad", "phone": "1"},
            headers=STAFF,
        )
        self.assertEqual(response.status_code, 422)


class TestSubmit(TestWalkInApi):

    def test_incomplete_order(self):
        session_id = self.open_session()
        response = self.client.post(self.url(session_id, "/submit"), headers=STAFF)
        self.assertEqual(response.status_code, 422)
        detail = response.json()["detail"]
        self.assertIn("mechanicId", detail["errors"])
        self.assertEqual(self.backend.calls_to("POST", "/api/Orders/walkin"), [])

    def test_submit_and_resubmit(self):
        session_id = self.open_session()
        self.compose(session_id)

        response = self.client.post(self.url(session_id, "/submit"), headers=STAFF)

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["route"], "service_only")
        self.assertEqual(body["bill"]["order"]["orderId"], 301)
        self.assertEqual(body["subtotal"], 1949.15)
        self.assertEqual(body["salesTax"], 350.85)

        again = self.client.post(self.url(session_id, "/submit"), headers=STAFF)
        self.assertEqual(again.status_code, 409)
        self.assertEqual(len(self.backend.calls_to("POST", "/api/Orders/walkin")), 1)
        self.assertEqual(self.client.get(self.url(session_id), headers=STAFF).json()["state"], "Committed")


class TestRejectedSubmit(TestWalkInApi):

    overrides = {("POST", "/api/Orders/walkin"): ApiError(409, "Mechanic has too many active appointments")}

    def test_rejection_is_conflict_and_keeps_selection(self):
        session_id = self.open_session()
        self.compose(session_id)

        response = self.client.post(self.url(session_id, "/submit"), headers=STAFF)

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["detail"], "Mechanic has too many active appointments")
        view = self.client.get(self.url(session_id), headers=STAFF).json()
        self.assertEqual(view["composition"]["service"]["serviceId"], 1)
        self.assertEqual(view["composition"]["mechanic"]["mechanicId"], 11)


if __name__ == '__main__':
    unittest.main()
