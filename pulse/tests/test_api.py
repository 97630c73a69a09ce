"""
HTTP contract tests for the Campaign Pulse API.

The app is exercised through FastAPI's TestClient with the engine dependency
overridden by an engine on a fake clock, so no lifespan or real timers run.
"""

from typing import Any, Dict, Generator

import pytest
from fastapi.testclient import TestClient

from pulse.core.config import Settings
from pulse.core.dependencies import get_engine
from pulse.main import app
from pulse.services.engine import SnapshotEngine
from pulse.tests.conftest import FakeClock, FakeScheduler


def _record(campaign_id: str = 'a', day: str = '2026-10-18', **metrics: Any) -> Dict[str, Any]:
    body = {'campaignId': campaign_id, 'date': day, 'cost': 100.0, 'revenue': 300.0}
    body.update(metrics)
    return body


@pytest.fixture
def engine(settings: Settings, clock: FakeClock, scheduler: FakeScheduler) -> Generator[SnapshotEngine, None, None]:
    engine = SnapshotEngine(settings, clock=clock, scheduler=scheduler)
    engine.start()
    yield engine
    engine.dispose()


@pytest.fixture
def client(engine: SnapshotEngine) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestSnapshotsEndpoints:
    """GET/POST /snapshots and GET/PUT /snapshots/{date}."""

    def test_list_empty(self, client: TestClient) -> None:
        response = client.get('/snapshots')

        assert response.status_code == 200
        assert response.json() == {'dates': [], 'currentDate': '2026-10-18'}

    def test_save_and_list(self, client: TestClient) -> None:
        response = client.post('/snapshots', json={'records': [_record()]})

        assert response.status_code == 200
        body = response.json()
        assert body['date'] == '2026-10-18'
        assert body['timezone'] == 'America/Sao_Paulo'
        assert body['records'][0]['campaignId'] == 'a'
        assert client.get('/snapshots').json()['dates'] == ['2026-10-18']

    def test_save_without_body_uses_live_records(self, client: TestClient) -> None:
        client.put('/metrics', json={'records': [_record('live')]})

        response = client.post('/snapshots')

        assert response.status_code == 200
        assert [r['campaignId'] for r in response.json()['records']] == ['live']

    def test_get_unknown_date(self, client: TestClient) -> None:
        assert client.get('/snapshots/2026-10-01').status_code == 404

    def test_get_invalid_date(self, client: TestClient) -> None:
        assert client.get('/snapshots/yesterday').status_code == 422

    def test_update_today_conflicts(self, client: TestClient) -> None:
        client.post('/snapshots', json={'records': [_record()]})

        response = client.put('/snapshots/2026-10-18', json={'records': []})

        assert response.status_code == 409

    def test_update_unknown_date(self, client: TestClient) -> None:
        response = client.put('/snapshots/2026-10-01', json={'records': []})

        assert response.status_code == 404

    def test_update_past_snapshot(self, client: TestClient, engine: SnapshotEngine) -> None:
        from datetime import date
        from pulse.tests.conftest import make_record

        engine.store.save_for_date(date(2026, 10, 10), [make_record('old', record_date=date(2026, 10, 10))])

        response = client.put(
            '/snapshots/2026-10-10',
            json={'records': [_record('new', day='2026-10-10')]},
        )

        assert response.status_code == 200
        assert response.json()['date'] == '2026-10-10'
        assert [r['campaignId'] for r in response.json()['records']] == ['new']


class TestMetricsEndpoints:
    """Live-day records and CSV ingestion."""

    def test_replace_and_read(self, client: TestClient) -> None:
        response = client.put('/metrics', json={'records': [_record('a'), _record('b')]})

        assert response.status_code == 200
        assert response.json()['count'] == 2
        assert client.get('/metrics').json()['count'] == 2

    def test_invalid_record_rejected(self, client: TestClient) -> None:
        response = client.put('/metrics', json={'records': [_record(cost=-1)]})

        assert response.status_code == 422

    def test_csv_ingestion(self, client: TestClient) -> None:
        content = (
            "Campanha;Custo;Valor de conv.;Orçamento\n"
            "Search - Brand;R$ 1.234,56;R$ 5.000,00;Diário\n"
        )

        response = client.post('/metrics/csv', json={'content': content, 'delimiter': ';'})

        assert response.status_code == 200
        body = response.json()
        assert body['success'] is True
        assert body['records'][0]['cost'] == pytest.approx(1234.56)
        assert body['records'][0]['date'] == '2026-10-18'
        assert client.get('/metrics').json()['count'] == 1

    def test_csv_without_campaign_column(self, client: TestClient) -> None:
        response = client.post('/metrics/csv', json={'content': "Custo;Cliques\n10;5\n"})

        assert response.status_code == 422
        assert response.json()['detail']['errors'][0]['field'] == 'campaign'


class TestForecastEndpoints:
    """GET /forecast from stored state, POST /forecast from body."""

    def test_empty_forecast(self, client: TestClient) -> None:
        response = client.get('/forecast')

        assert response.status_code == 200
        body = response.json()
        assert body['confidence'] == 0
        assert body['insights'] == []
        assert body['goalStatus'] == 'below'
        assert body['daysRemaining'] == 13

    def test_forecast_from_body(self, client: TestClient) -> None:
        records = [
            _record('a', day=f'2026-10-0{day}', revenue=100.0 + 10 * (day - 1), cost=50.0)
            for day in range(1, 8)
        ]

        response = client.post('/forecast', json={'records': records, 'asOf': '2026-10-07'})

        assert response.status_code == 200
        body = response.json()
        assert body['scenarios']['realistic']['revenue'] == pytest.approx(400.0)
        assert body['daysRemaining'] == 24
        assert body['historyDays'] == 7

    def test_goal_override(self, client: TestClient) -> None:
        client.put('/metrics', json={'records': [_record()]})

        response = client.get('/forecast', params={'monthlyGoal': 1000})

        assert response.json()['monthlyGoal'] == 1000


class TestServiceEndpoints:
    """Health and engine availability."""

    def test_health_reports_rollover_status(self, client: TestClient, engine: SnapshotEngine) -> None:
        app.state.engine = engine
        try:
            body = client.get('/health').json()
        finally:
            app.state.engine = None

        assert body['status'] == 'healthy'
        assert body['rollover']['state'] == 'idle'
        assert body['rollover']['currentDate'] == '2026-10-18'

    def test_engine_unavailable(self) -> None:
        app.state.engine = None

        response = TestClient(app).get('/snapshots')

        assert response.status_code == 503
