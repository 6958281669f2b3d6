import requests
from typing import Optional


class GymClient:
    """Simple REST client for the gym tracker API."""

    def __init__(self, base_url: str = "http://localhost:8000", timeout: float = 10.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _get(self, path: str, **params):
        resp = requests.get(f"{self.base_url}{path}", params=params, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def _post(self, path: str, **params):
        resp = requests.post(f"{self.base_url}{path}", params=params, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def start_session(self, workout_type: str = "custom", custom_type_name: Optional[str] = None) -> int:
        params = {"workout_type": workout_type}
        if custom_type_name:
            params["custom_type_name"] = custom_type_name
        return self._post("/sessions", **params)["id"]

    def finish_session(self, session_id: int) -> dict:
        return self._post(f"/sessions/{session_id}/finish")

    def add_exercise(self, session_id: int, exercise_id: int) -> int:
        return self._post(f"/sessions/{session_id}/exercises", exercise_id=exercise_id)["id"]

    def log_set(
        self,
        workout_exercise_id: int,
        reps: Optional[int],
        weight_kg: Optional[float],
        is_warmup: bool = False,
    ) -> int:
        params = {"is_warmup": is_warmup}
        if reps is not None:
            params["reps"] = reps
        if weight_kg is not None:
            params["weight_kg"] = weight_kg
        return self._post(f"/workout_exercises/{workout_exercise_id}/sets", **params)["id"]

    def suggestion(self, exercise_id: int) -> dict:
        return self._get(f"/exercises/{exercise_id}/suggestion")

    def exercise_stats(self, exercise_id: int) -> dict:
        return self._get(f"/exercises/{exercise_id}/stats")

    def training_history(self) -> dict:
        return self._get("/training_history")
