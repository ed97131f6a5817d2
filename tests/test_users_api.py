from gmb_dashboard.models.document_models import UserAccount
from support import ApiTestCase, bearer


class UserAdminTests(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        (self.lead,) = self.add(
            UserAccount(user="Hebbal Lead", mail="hebbal@example.com", psw="pw", role="Branch", cluster="South", branch="Hebbal")
        )
        self.admin = bearer("Admin")

    def test_non_admin_is_forbidden(self) -> None:
        for role, kw in (("Cluster", {"cluster": "South"}), ("Branch", {"branch": "Hebbal"})):
            response = self.client.get("/api/users", headers=bearer(role, **kw))
            self.assert_error(response, 403, "Admin access required")

    def test_create_list_update_delete(self) -> None:
        created = self.client.post(
            "/api/users",
            json={"user": "North Lead", "mail": "north@example.com", "psw": "pw", "role": "Cluster", "cluster": "North"},
            headers=self.admin,
        )
        self.assertEqual(201, created.status_code, msg=created.text)
        user_id = created.json()["data"]["id"]
        self.assertNotIn("psw", created.json()["data"])

        listed = self.client.get("/api/users", headers=self.admin).json()
        self.assertEqual(2, listed["count"])

        updated = self.client.put(f"/api/users/{user_id}", json={"cluster": "East"}, headers=self.admin)
        self.assertEqual("East", updated.json()["data"]["cluster"])
        self.assertEqual("Cluster", updated.json()["data"]["role"])

        self.assertEqual(200, self.client.delete(f"/api/users/{user_id}", headers=self.admin).status_code)
        self.assert_error(self.client.get(f"/api/users/{user_id}", headers=self.admin), 404)

    def test_unknown_role_is_rejected(self) -> None:
        response = self.client.post(
            "/api/users",
            json={"user": "X", "mail": "x@example.com", "psw": "pw", "role": "Superuser"},
            headers=self.admin,
        )
        self.assert_error(response, 400)

    def test_own_notification_preferences(self) -> None:
        headers = bearer("Branch", branch="Hebbal", user_id=self.lead.id)
        response = self.client.put(
            "/api/users/me/notifications",
            json={"monthlyReport": True, "phoneChange": True},
            headers=headers,
        )
        self.assertEqual(200, response.status_code, msg=response.text)
        self.session.refresh(self.lead)
        self.assertTrue(self.lead.notify_monthly_report)
        self.assertTrue(self.lead.notify_phone_change)
        self.assertFalse(self.lead.notify_name_change)

    def test_notification_preferences_need_a_stored_user(self) -> None:
        response = self.client.put("/api/users/me/notifications", json={"monthlyReport": True}, headers=self.admin)
        self.assert_error(response, 404)
