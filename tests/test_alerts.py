from gmb_dashboard.config import settings
from gmb_dashboard.models.context_models import Principal
from gmb_dashboard.services.alert_service import mark_all_read, mark_read, record_alert, unread_count, visible_alerts
from support import ApiTestCase, DatabaseTestCase, bearer


def seed_alerts(case: DatabaseTestCase) -> None:
    record_alert(case.session, user="Admin Two", email="a2@example.com", role="Admin", location="Dashboard")
    record_alert(case.session, user="South Lead", email="s@example.com", role="Cluster", location="South", cluster="South")
    record_alert(case.session, user="Whitefield", email="w@example.com", role="Branch", location="Whitefield", cluster="South")
    record_alert(case.session, user="Dwarka", email="d@example.com", role="Branch", location="Dwarka", cluster="North")


class AlertVisibilityTests(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        seed_alerts(self)

    def users(self, principal: Principal) -> list:
        return [a.user for a in visible_alerts(self.session, principal)]

    def test_super_admin_sees_everything(self) -> None:
        principal = Principal(email=settings.super_admin_email.upper(), role="Branch")
        self.assertEqual(["Dwarka", "Whitefield", "South Lead", "Admin Two"], self.users(principal))

    def test_admin_sees_cluster_and_branch_alerts(self) -> None:
        self.assertEqual(["Dwarka", "Whitefield", "South Lead"], self.users(Principal(email="x@example.com", role="Admin")))

    def test_cluster_sees_own_branch_alerts(self) -> None:
        principal = Principal(email="s@example.com", role="Cluster", cluster="South")
        self.assertEqual(["Whitefield"], self.users(principal))

    def test_branch_sees_nothing(self) -> None:
        principal = Principal(email="w@example.com", role="Branch", cluster="South", branch="Whitefield")
        self.assertEqual([], self.users(principal))

    def test_mark_read_only_touches_visible_alerts(self) -> None:
        cluster = Principal(role="Cluster", cluster="South")
        admin = Principal(role="Admin")
        dwarka = visible_alerts(self.session, admin)[0]

        self.assertIsNone(mark_read(self.session, cluster, dwarka.id))
        self.assertEqual(1, unread_count(self.session, cluster))
        self.assertEqual(1, mark_all_read(self.session, cluster))
        self.assertEqual(0, unread_count(self.session, cluster))
        self.assertEqual(2, unread_count(self.session, admin))

        self.assertTrue(mark_read(self.session, admin, dwarka.id).read)
        self.assertEqual(1, unread_count(self.session, admin))


class AlertRoutesTests(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        seed_alerts(self)

    def test_list_alerts(self) -> None:
        response = self.client.get("/api/alerts", headers=bearer("Cluster", cluster="South"))
        self.assertEqual(200, response.status_code)
        body = response.json()
        self.assertEqual(["Whitefield"], [a["user"] for a in body["data"]])
        self.assertEqual(1, body["unread_count"])

    def test_read_routes(self) -> None:
        headers = bearer("Admin", email="ops@example.com")
        first = self.client.get("/api/alerts", headers=headers).json()["data"][0]
        response = self.client.put(f"/api/alerts/{first['id']}/read", headers=headers)
        self.assertTrue(response.json()["data"]["read"])

        response = self.client.put("/api/alerts/read-all", headers=headers)
        self.assertEqual(2, response.json()["data"]["updated"])
        unread = self.client.get("/api/alerts", params={"unread": "true"}, headers=headers).json()
        self.assertEqual([], unread["data"])

    def test_read_invisible_alert_is_404(self) -> None:
        admin_alert = visible_alerts(self.session, Principal(email=settings.super_admin_email))[-1]
        response = self.client.put(f"/api/alerts/{admin_alert.id}/read", headers=bearer("Admin"))
        self.assert_error(response, 404)

    def test_post_alert(self) -> None:
        response = self.client.post(
            "/api/alerts",
            json={"user": "Hebbal", "role": "Branch", "location": "Hebbal", "cluster": "South"},
            headers=bearer("Branch", cluster="South", branch="Hebbal"),
        )
        self.assertEqual(201, response.status_code, msg=response.text)
        users = [a.user for a in visible_alerts(self.session, Principal(role="Cluster", cluster="South"))]
        self.assertIn("Hebbal", users)

    def test_post_alert_defaults_to_caller(self) -> None:
        response = self.client.post(
            "/api/alerts",
            json={"user": "Hebbal", "location": "Hebbal"},
            headers=bearer("Branch", cluster="South", branch="Hebbal"),
        )
        self.assertEqual(201, response.status_code, msg=response.text)
        self.assertEqual(("Branch", "South"), (response.json()["data"]["role"], response.json()["data"]["cluster"]))

    def test_post_alert_as_someone_else_is_403(self) -> None:
        headers = bearer("Branch", cluster="South", branch="Hebbal")
        for body in ({"user": "X", "role": "Cluster"}, {"user": "X", "cluster": "North"}):
            self.assert_error(self.client.post("/api/alerts", json=body, headers=headers), 403)

        response = self.client.post("/api/alerts", json={"user": "X", "role": "Cluster", "cluster": "North"}, headers=bearer("Admin"))
        self.assertEqual(201, response.status_code, msg=response.text)
