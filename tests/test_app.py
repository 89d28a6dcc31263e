import base64
import io
import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient
from PIL import Image

import app as service
from fakes import CountingFactory, FakeMesh, make_landmarks
from src.analyzers import FaceAnalyzer, FaceMeshDetector
from src.recommendation import load_catalog


def _png_bytes(rgb=(220, 180, 150), size=(32, 32)):
    buf = io.BytesIO()
    Image.new("RGB", size, rgb).save(buf, format="PNG")
    return buf.getvalue()


def _analyzer(landmarks=None, error=None):
    return FaceAnalyzer(FaceMeshDetector(CountingFactory(FakeMesh(landmarks), error=error)))


CATALOG = load_catalog(
    [
        {"id": "bob", "name": "Bob", "category": "cut", "suitability": {"faceShapes": {"Oval": "Excellent"}}},
        {"id": "pixie", "name": "Pixie", "category": "cut", "suitability": {"faceShapes": {"Round": "Good"}}},
        {"id": "honey", "name": "Honey Blonde", "category": "color", "suitability": {"personalColors": {"SpringWarmBright": "Good"}}},
    ]
)


class AnalyzeEndpointTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(service.app)

    def _post(self, analyzer, body, **kwargs):
        with patch.object(service, "face_analyzer", analyzer):
            return self.client.post("/analyze", json=body, **kwargs)

    def test_health(self) -> None:
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")
        self.assertIn("detectorReady", response.json())

    def test_successful_analysis(self) -> None:
        encoded = base64.b64encode(_png_bytes()).decode("ascii")
        response = self._post(
            _analyzer(make_landmarks(1.5, 0.5)),
            {"image_base64": "data:image/png;base64," + encoded},
            headers={"X-Trace-Id": "trace-1"},
        )
        payload = response.json()
        self.assertEqual(response.headers["X-Trace-Id"], "trace-1")
        self.assertEqual(payload["status"], "ok")
        self.assertTrue(payload["detected"])
        self.assertEqual(payload["faceShape"], "Oval")
        self.assertEqual(payload["personalColor"], "SpringWarmBright")
        self.assertEqual(payload["skinTone"]["hex"], "#dcb496")
        self.assertEqual(payload["traceId"], "trace-1")
        self.assertNotIn("landmarks", payload)

    def test_camel_case_request_and_options(self) -> None:
        encoded = base64.b64encode(_png_bytes()).decode("ascii")
        response = self._post(
            _analyzer(make_landmarks()),
            {"imageBase64": encoded, "options": {"traceId": "abc", "includeLandmarks": True}},
        )
        payload = response.json()
        self.assertEqual(payload["traceId"], "abc")
        self.assertEqual(len(payload["landmarks"]), 468)

    def test_debug_image(self) -> None:
        encoded = base64.b64encode(_png_bytes()).decode("ascii")
        response = self._post(
            _analyzer(make_landmarks()), {"image_base64": encoded}, params={"debug": "true"}
        )
        self.assertIn("debug_image_base64", response.json())

    def test_invalid_image(self) -> None:
        response = self._post(_analyzer(make_landmarks()), {"image_base64": "aGVsbG8="})
        payload = response.json()
        self.assertEqual(payload["status"], "error")
        self.assertEqual(payload["code"], "INVALID_IMAGE")
        self.assertFalse(payload["detected"])
        self.assertIn("X-Trace-Id", response.headers)

    def test_no_face_is_guardrail(self) -> None:
        encoded = base64.b64encode(_png_bytes()).decode("ascii")
        payload = self._post(_analyzer(None), {"image_base64": encoded}).json()
        self.assertEqual(payload["status"], "guardrail")
        self.assertEqual(payload["code"], "NO_FACE")
        self.assertNotIn("faceShape", payload)

    def test_model_unavailable_is_error(self) -> None:
        encoded = base64.b64encode(_png_bytes()).decode("ascii")
        payload = self._post(_analyzer(error=RuntimeError("x")), {"image_base64": encoded}).json()
        self.assertEqual(payload["status"], "error")
        self.assertEqual(payload["code"], "MODEL_UNAVAILABLE")

    def test_file_upload(self) -> None:
        with patch.object(service, "face_analyzer", _analyzer(make_landmarks(1.0, 0.9))):
            response = self.client.post(
                "/analyze/file", files={"file": ("face.png", _png_bytes(), "image/png")}
            )
        payload = response.json()
        self.assertEqual(payload["status"], "ok")
        self.assertEqual(payload["faceShape"], "Round")

    def test_empty_file_upload(self) -> None:
        response = self.client.post("/analyze/file", files={"file": ("face.png", b"", "image/png")})
        self.assertEqual(response.json()["code"], "INVALID_IMAGE")

    def test_analyze_decodes_through_analyzer(self) -> None:
        analyzer = _analyzer(make_landmarks())
        encoded = base64.b64encode(_png_bytes()).decode("ascii")
        with patch.object(analyzer, "analyze_bytes", wraps=analyzer.analyze_bytes) as spy:
            payload = self._post(analyzer, {"image_base64": encoded}).json()
        spy.assert_called_once()
        self.assertEqual(payload["status"], "ok")


class FaceShapeEndpointTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(service.app)

    def _post(self, analyzer, body, **kwargs):
        with patch.object(service, "face_analyzer", analyzer):
            return self.client.post("/face-shape", json=body, **kwargs)

    def test_shape_and_metrics(self) -> None:
        encoded = base64.b64encode(_png_bytes()).decode("ascii")
        response = self._post(
            _analyzer(make_landmarks(1.5, 0.5)),
            {"image_base64": encoded},
            headers={"X-Trace-Id": "shape-1"},
        )
        payload = response.json()
        self.assertEqual(response.headers["X-Trace-Id"], "shape-1")
        self.assertEqual(payload["status"], "ok")
        self.assertEqual(payload["shape"], "Oval")
        self.assertAlmostEqual(payload["metrics"]["hw_ratio"], 1.5)
        self.assertAlmostEqual(payload["metrics"]["jw_ratio"], 0.5)
        self.assertEqual(payload["traceId"], "shape-1")

    def test_no_face_is_guardrail(self) -> None:
        encoded = base64.b64encode(_png_bytes()).decode("ascii")
        payload = self._post(_analyzer(None), {"image_base64": encoded}).json()
        self.assertEqual(payload["status"], "guardrail")
        self.assertEqual(payload["code"], "NO_FACE")
        self.assertNotIn("shape", payload)

    def test_invalid_image(self) -> None:
        payload = self._post(_analyzer(make_landmarks()), {"image_base64": "aGVsbG8="}).json()
        self.assertEqual(payload["status"], "error")
        self.assertEqual(payload["code"], "INVALID_IMAGE")

    def test_file_upload(self) -> None:
        with patch.object(service, "face_analyzer", _analyzer(make_landmarks(1.0, 0.9))):
            response = self.client.post(
                "/face-shape/file", files={"file": ("face.png", _png_bytes(), "image/png")}
            )
        payload = response.json()
        self.assertEqual(payload["shape"], "Round")
        self.assertIn("X-Trace-Id", response.headers)


class RecommendationEndpointTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(service.app)
        self.analysis = {
            "detected": True,
            "faceShape": "Oval",
            "personalColor": "SpringWarmBright",
            "confidence": 0.95,
            "skinTone": {"r": 220, "g": 180, "b": 150, "hex": "#dcb496"},
        }

    def _post(self, body):
        with patch.object(service, "catalog", CATALOG):
            return self.client.post("/recommendations", json=body)

    def test_scores_every_style(self) -> None:
        payload = self._post({"analysis": self.analysis}).json()
        scores = {s["id"]: (s["score"], s["meetsGoodThreshold"], s["isTopTier"]) for s in payload["styles"]}
        self.assertEqual(
            scores,
            {"bob": (3, True, True), "pixie": (0, False, False), "honey": (2, True, False)},
        )

    def test_recommended_only_by_category(self) -> None:
        payload = self._post(
            {"analysis": self.analysis, "category": "cut", "recommendedOnly": True}
        ).json()
        self.assertEqual([s["id"] for s in payload["styles"]], ["bob"])

    def test_uppercase_skin_tone_hex_is_accepted(self) -> None:
        analysis = dict(self.analysis, skinTone={"r": 220, "g": 180, "b": 150, "hex": "#DCB496"})
        response = self._post({"analysis": analysis})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()["styles"]), 3)

    def test_undetected_analysis_scores_zero(self) -> None:
        body = {"analysis": {"detected": False, "message": "no face"}}
        payload = self._post(body).json()
        self.assertTrue(all(s["score"] == 0 for s in payload["styles"]))

    def test_styles_listing(self) -> None:
        with patch.object(service, "catalog", CATALOG):
            payload = self.client.get("/styles").json()
        self.assertEqual([s["id"] for s in payload["styles"]], ["bob", "pixie", "honey"])


if __name__ == "__main__":
    unittest.main()
