"""Tests for habitta.web.routes.predictions - Prediction run route."""

from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from habitta.errors import PropertyNotFoundError
from habitta.models import PredictionRunSummary
from habitta.web.routes import predictions


@pytest.fixture
def app():
    """Create test FastAPI app with predictions router."""
    test_app = FastAPI()
    test_app.include_router(predictions.router)
    return test_app


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def mock_db_session():
    """Mock database session with async context manager."""
    session = AsyncMock()

    async_cm = AsyncMock()
    async_cm.__aenter__.return_value = session
    async_cm.__aexit__.return_value = None

    return async_cm


class TestRunPredictions:
    """Tests for POST /api/predictions/run."""

    @patch("habitta.web.routes.predictions.run_predictions", new_callable=AsyncMock)
    @patch("habitta.web.routes.predictions.get_session")
    def test_success(self, mock_get_session, mock_run, client, mock_db_session):
        """Test a successful run returns the summary."""
        mock_get_session.return_value = mock_db_session
        run_id = uuid4()
        mock_run.return_value = PredictionRunSummary(
            address_id="addr-1",
            prediction_run_id=run_id,
            model_version="rules_v1.0",
            predictions_generated=6,
        )

        response = client.post("/api/predictions/run", json={"address_id": "addr-1"})

        assert response.status_code == 200
        assert response.json() == {
            "status": "success",
            "predictions_generated": 6,
            "prediction_run_id": str(run_id),
            "model_version": "rules_v1.0",
        }
        assert mock_run.await_args.args[1] == "addr-1"

    def test_missing_address_id(self, client):
        """Test 400 when address_id is absent."""
        response = client.post("/api/predictions/run", json={})

        assert response.status_code == 400
        assert response.json()["detail"] == "address_id is required"

    def test_missing_body(self, client):
        response = client.post("/api/predictions/run")

        assert response.status_code == 400

    @patch("habitta.web.routes.predictions.run_predictions", new_callable=AsyncMock)
    @patch("habitta.web.routes.predictions.get_session")
    def test_unknown_property(self, mock_get_session, mock_run, client, mock_db_session):
        """Test 404 when the property does not exist."""
        mock_get_session.return_value = mock_db_session
        mock_run.side_effect = PropertyNotFoundError("addr-missing")

        response = client.post("/api/predictions/run", json={"address_id": "addr-missing"})

        assert response.status_code == 404
        assert "addr-missing" in response.json()["detail"]

    @patch("habitta.web.routes.predictions.run_predictions", new_callable=AsyncMock)
    @patch("habitta.web.routes.predictions.get_session")
    def test_unexpected_failure(self, mock_get_session, mock_run, client, mock_db_session):
        """Test 500 with the error message on unexpected failures."""
        mock_get_session.return_value = mock_db_session
        mock_run.side_effect = RuntimeError("database unavailable")

        response = client.post("/api/predictions/run", json={"address_id": "addr-1"})

        assert response.status_code == 500
        assert response.json()["detail"] == "database unavailable"
