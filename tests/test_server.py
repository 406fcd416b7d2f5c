import json

import pytest

from server import create_app
from visualization import ParameterController, QuantumParameters, VisualizationSession


@pytest.fixture
def client(fake_solver):
    session = VisualizationSession(QuantumParameters(zeta=1.0, n=2, l=1),
                                   layer_count=5, polar_steps=2, azimuth_steps=3)
    app = create_app(ParameterController(session, solve=fake_solver))
    app.config["TESTING"] = True
    return app.test_client()


def test_controls(client):
    controls = {c["name"]: c for c in client.get("/api/controls").get_json()["controls"]}
    assert controls["zeta"]["step"] == 0.01
    assert (controls["n"]["min"], controls["n"]["max"]) == (1, 5)
    assert (controls["l"]["min"], controls["l"]["max"]) == (0, 4)
    assert controls["n"]["value"] == 2


def test_get_parameters(client):
    data = client.get("/api/parameters").get_json()
    assert data == {"parameters": {"zeta": 1.0, "n": 2, "l": 1}, "revision": 1}


def test_post_valid_change(client):
    resp = client.post("/api/parameters", json={"field": "n", "value": 4})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["accepted"] is True
    assert data["parameters"]["n"] == 4
    assert data["revision"] == 2


def test_post_invalid_change_is_rejected(client):
    before = client.get("/api/point-cloud").get_json()
    resp = client.post("/api/parameters", json={"field": "l", "value": 2})
    assert resp.status_code == 422
    data = resp.get_json()
    assert data["accepted"] is False
    assert data["reason"]
    assert data["parameters"]["l"] == 1
    assert client.get("/api/point-cloud").get_json() == before


@pytest.mark.parametrize("body", [None, {"field": "n"}, {"field": "m", "value": 1}, {"field": "n", "value": "x"},
                                  {"field": "n", "value": True}])
def test_post_malformed_body(client, body):
    resp = client.post("/api/parameters", json=body) if body is not None else \
        client.post("/api/parameters", data="nope", content_type="text/plain")
    assert resp.status_code == 400


def test_point_cloud(client):
    data = client.get("/api/point-cloud").get_json()
    assert len(data["positions"]) == 5 * 2 * 3 * 3
    assert data["n_points"] == 30
    assert data["revision"] == 1


def test_point_cloud_figure(client):
    resp = client.get("/api/point-cloud/figure")
    assert resp.status_code == 200
    fig = json.loads(resp.data)
    assert fig["data"][0]["type"] == "scatter3d"
    assert "2p" in fig["layout"]["title"]["text"]


def test_figure_read_does_not_touch_stored_cloud(client):
    app_session = client.application.config["CONTROLLER"].session
    stored = app_session.cloud.figure
    before = stored.to_json()

    resp = client.get("/api/point-cloud/figure")

    assert resp.status_code == 200
    assert app_session.cloud.figure is stored
    assert stored.to_json() == before
    assert stored.layout.title.text is None


def test_radial_solution(client):
    data = client.get("/api/radial-solution").get_json()
    assert data["grid_size"] == 200
    assert len(data["r"]) == len(data["R_r"]) == len(data["V_eff"]) == 200
    assert data["shells"]["stride"] == 40
    assert data["shells"]["indices"] == [0, 40, 80, 120, 160]


def test_orbital_info(client):
    data = client.get("/api/orbital-info").get_json()
    assert data["label"] == "2p"
    assert data["nodes_radial"] == 0
    assert data["nodes_angular"] == 1
    assert data["bohr_energy_ry"] == pytest.approx(-0.25)
    assert data["node_positions"] == []
