import json

import httpx

from gmb_dashboard.api.deps import get_gmb_client
from gmb_dashboard.connectors.gmb.client import GMBClient
from gmb_dashboard.main import app
from support import ApiTestCase, bearer

KEYWORD_REQUEST = {
    "email": "owner@example.com",
    "locationId": "locations/123",
    "startYear": 2025,
    "startMonth": 1,
    "endYear": 2025,
    "endMonth": 3,
}


class GMBProxyTests(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.upstream_requests = []
        self.upstream_response = httpx.Response(200, json={"status": "ok", "keywords": [{"keyword": "ent doctor"}]})

        def handler(request: httpx.Request) -> httpx.Response:
            self.upstream_requests.append(json.loads(request.content))
            return self.upstream_response

        async def fake_client():
            client = GMBClient(
                base_url="http://gmb.test/api.php",
                max_retries=1,
                transport=httpx.MockTransport(handler),
                retry_base_delay=0,
            )
            try:
                yield client
            finally:
                await client.close()

        app.dependency_overrides[get_gmb_client] = fake_client
        self.headers = bearer("Branch", cluster="South", branch="Whitefield")

    def test_liveness(self) -> None:
        response = self.client.get("/api/search-keywords-impressions")
        self.assertEqual(200, response.status_code)
        self.assertTrue(response.json()["success"])

    def test_relays_upstream_json_unchanged(self) -> None:
        response = self.client.post("/api/search-keywords-impressions", json=KEYWORD_REQUEST, headers=self.headers)
        self.assertEqual(200, response.status_code, msg=response.text)
        self.assertEqual({"status": "ok", "keywords": [{"keyword": "ent doctor"}]}, response.json())
        self.assertEqual("search_keywords_impressions", self.upstream_requests[0]["action"])
        self.assertEqual("locations/123", self.upstream_requests[0]["locationId"])

    def test_every_field_is_required(self) -> None:
        for field in KEYWORD_REQUEST:
            body = {k: v for k, v in KEYWORD_REQUEST.items() if k != field}
            response = self.client.post("/api/search-keywords-impressions", json=body, headers=self.headers)
            self.assert_error(response, 400, "Missing required fields")
        self.assertEqual([], self.upstream_requests)

    def test_unparseable_upstream_is_500(self) -> None:
        self.upstream_response = httpx.Response(200, text="Fatal error")
        response = self.client.post("/api/search-keywords-impressions", json=KEYWORD_REQUEST, headers=self.headers)
        self.assert_error(response, 500, "Failed to parse external API response")

    def test_proxy_requires_token(self) -> None:
        self.assert_error(self.client.post("/api/search-keywords-impressions", json=KEYWORD_REQUEST), 401)

    def test_reviews_aggregate(self) -> None:
        self.upstream_response = httpx.Response(
            200,
            json={"reviews": [{"starRating": "FIVE", "comment": "Kind staff", "reviewer": {"displayName": "R"}}]},
        )
        response = self.client.post(
            "/api/reviews", json={"email": "owner@example.com", "location": "locations/123"}, headers=self.headers
        )
        self.assertEqual(200, response.status_code, msg=response.text)
        data = response.json()["data"]
        self.assertEqual([0, 0, 0, 0, 1], data["ratings"])
        self.assertEqual(5.0, data["average_rating"])
        self.assertEqual("reviews", self.upstream_requests[0]["function"])

    def test_reviews_require_email_and_location(self) -> None:
        response = self.client.post("/api/reviews", json={"email": "owner@example.com"}, headers=self.headers)
        self.assert_error(response, 400, "Email and Location required")

    def test_reviews_upstream_failure_still_succeeds(self) -> None:
        self.upstream_response = httpx.Response(500, text="down")
        response = self.client.post(
            "/api/reviews", json={"email": "owner@example.com", "location": "loc"}, headers=self.headers
        )
        self.assertEqual(200, response.status_code)
        self.assertEqual(0, response.json()["data"]["total_fetched"])
