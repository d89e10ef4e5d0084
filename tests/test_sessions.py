import unittest

from walkin_desk.auth import AuthContext
from walkin_desk.errors import ConfigurationError
from walkin_desk.sessions import SessionNotFound, SessionRegistry

from support import FakeClient, backend_responses, make_workflow


class FakeClock:

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestSessionRegistry(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.registry = SessionRegistry(ttl=600, clock=self.clock)
        self.auth = AuthContext("staff-token")
        self.clients = []

    def factory(self, auth):
        client = FakeClient(backend_responses())
        self.clients.append(client)
        return make_workflow(client)

    def test_open_requires_token(self):
        with self.assertRaises(ConfigurationError):
            self.registry.open(AuthContext(None), self.factory)
        self.assertEqual(len(self.registry), 0)
        self.assertEqual(self.clients, [])

    def test_other_token_cannot_see_session(self):
        session = self.registry.open(self.auth, self.factory)
        with self.assertRaises(SessionNotFound):
            self.registry.get(session.session_id, AuthContext("other-token"))
        self.assertIs(self.registry.get(session.session_id, self.auth), session)

    def test_close_releases_client(self):
        session = self.registry.open(self.auth, self.factory)

        self.registry.close(session.session_id, self.auth)

        self.assertEqual(len(self.registry), 0)
        self.assertTrue(self.clients[0].closed)
        with self.assertRaises(SessionNotFound):
            self.registry.get(session.session_id, self.auth)

    def test_idle_sessions_expire(self):
        idle = self.registry.open(self.auth, self.factory)
        self.clock.now += 400
        active = self.registry.open(self.auth, self.factory)
        self.clock.now += 300

        self.assertEqual(self.registry.prune(), 1)

        self.assertEqual(len(self.registry), 1)
        self.assertTrue(self.clients[0].closed)
        self.assertFalse(self.clients[1].closed)
        with self.assertRaises(SessionNotFound):
            self.registry.get(idle.session_id, self.auth)
        self.assertIs(self.registry.get(active.session_id, self.auth), active)

    def test_use_keeps_session_alive(self):
        session = self.registry.open(self.auth, self.factory)
        for _ in range(3):
            self.clock.now += 500
            self.registry.get(session.session_id, self.auth)
        self.assertEqual(len(self.registry), 1)

    def test_committed_session_expires_like_any_other(self):
        session = self.registry.open(self.auth, self.factory)
        workflow = session.workflow
        workflow.search_customers("jane")
        workflow.select_customer(5)
        workflow.update_selection({"vehicle_id": 21, "service_id": 1, "mechanic_id": 11})
        self.assertTrue(workflow.submit().ok)

        self.clock.now += 601
        self.registry.prune()

        self.assertEqual(len(self.registry), 0)
        self.assertTrue(self.clients[0].closed)

    def test_no_ttl_keeps_sessions(self):
        registry = SessionRegistry(clock=self.clock)
        registry.open(self.auth, self.factory)
        self.clock.now += 10 ** 6
        self.assertEqual(registry.prune(), 0)
        self.assertEqual(len(registry), 1)

    def test_close_all(self):
        self.registry.open(self.auth, self.factory)
        self.registry.open(self.auth, self.factory)
        self.registry.close_all()
        self.assertEqual(len(self.registry), 0)
        self.assertTrue(all(client.closed for client in self.clients))


if __name__ == '__main__':
    unittest.main()
