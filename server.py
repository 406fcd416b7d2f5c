import logging
import traceback

import numpy as np
import plotly.graph_objects as go
from flask import Flask, Response, request, jsonify
from flask_cors import CORS

import config
from hydrogen_radial import (
    ORBITAL_LABELS, RYDBERG_TO_EV, calculate_energy, find_radial_nodes, solve_radial,
)
from logging_config import setup_logging
from visualization import FIELDS, ParameterController, QuantumParameters, VisualizationSession

logger = logging.getLogger(__name__)


def control_definitions(params, n_max):
    """Slider definitions for the host UI"""
    return [
        {"name": "zeta", "min": config.ZETA_MIN, "max": config.ZETA_MAX,
         "step": config.ZETA_STEP, "value": params.zeta},
        {"name": "n", "min": 1, "max": n_max, "step": 1, "value": params.n},
        {"name": "l", "min": 0, "max": n_max - 1, "step": 1, "value": params.l},
    ]


def session_state(session):
    return {
        "parameters": session.parameters.as_dict(),
        "revision": session.revision,
    }


def create_app(controller=None):
    """Build the Flask app around a started ParameterController"""
    if controller is None:
        controller = ParameterController(VisualizationSession(QuantumParameters()), solve=solve_radial)
    if controller.session.cloud is None:
        controller.start()
    session = controller.session

    app = Flask(__name__)
    CORS(app)
    app.config["CONTROLLER"] = controller

    @app.route('/api/controls', methods=['GET'])
    def get_controls():
        return jsonify({"controls": control_definitions(session.parameters, controller.n_max)})

    @app.route('/api/parameters', methods=['GET'])
    def get_parameters():
        return jsonify(session_state(session))

    @app.route('/api/parameters', methods=['POST'])
    def post_parameters():
        """One control edit: {"field": "n", "value": 3}"""
        body = request.get_json(silent=True)
        if not isinstance(body, dict) or "field" not in body or "value" not in body:
            return jsonify({"error": "Expected a JSON object with 'field' and 'value'."}), 400
        field = body["field"]
        if field not in FIELDS:
            return jsonify({"error": f"Unknown parameter '{field}', expected one of {list(FIELDS)}."}), 400
        try:
            result = controller.propose_change(field, body["value"])
        except (TypeError, ValueError) as e:
            return jsonify({"error": str(e)}), 400
        except Exception as e:
            return jsonify({"error": str(e), "trace": traceback.format_exc()}), 500

        payload = session_state(session)
        payload["accepted"] = result.accepted
        if not result.accepted:
            payload["reason"] = result.reason
            return jsonify(payload), 422
        return jsonify(payload)

    @app.route('/api/point-cloud', methods=['GET'])
    def get_point_cloud():
        try:
            cloud = session.cloud
            return jsonify({
                "positions": cloud.positions.tolist(),
                "point_size": cloud.point_size,
                "n_points": cloud.n_points,
                "layer_count": session.layer_count,
                "polar_steps": session.polar_steps,
                "azimuth_steps": session.azimuth_steps,
                "revision": session.revision,
            })
        except Exception as e:
            return jsonify({"error": str(e), "trace": traceback.format_exc()}), 500

    @app.route('/api/point-cloud/figure', methods=['GET'])
    def get_point_cloud_figure():
        """Plotly figure JSON, ready for Plotly.react on the client"""
        try:
            fig = go.Figure(session.cloud.figure)
            p = session.parameters
            fig.update_layout(title=f"{session.solution.label} radial shells (zeta={p.zeta:.2f})")
            return Response(fig.to_json(), mimetype="application/json")
        except Exception as e:
            return jsonify({"error": str(e), "trace": traceback.format_exc()}), 500

    @app.route('/api/radial-solution', methods=['GET'])
    def get_radial_solution():
        try:
            solution, shells = session.solution, session.shells
            return jsonify({
                "r": solution.radii.tolist(),
                "R_r": solution.values.tolist(),
                "V_eff": solution.potential.tolist(),
                "eigenvalue": solution.eigenvalue,
                "grid_size": len(solution),
                "shells": {
                    "r": shells.radii.tolist(),
                    "R_r": shells.values.tolist(),
                    "indices": shells.indices.tolist(),
                    "stride": shells.stride,
                },
            })
        except Exception as e:
            return jsonify({"error": str(e), "trace": traceback.format_exc()}), 500

    @app.route('/api/orbital-info', methods=['GET'])
    def get_orbital_info():
        try:
            p, solution = session.parameters, session.solution
            E_ry, E_eV = calculate_energy(p.n, p.zeta)
            nodes = find_radial_nodes(p.n, p.l, p.zeta)
            return jsonify({
                "n": p.n, "l": p.l, "zeta": p.zeta,
                "label": f"{p.n}{ORBITAL_LABELS.get(p.l, '?')}",
                "eigenvalue_ry": solution.eigenvalue,
                "eigenvalue_ev": solution.eigenvalue * RYDBERG_TO_EV,
                "bohr_energy_ry": E_ry,
                "bohr_energy_ev": E_eV,
                "nodes_radial": p.n - p.l - 1,
                "nodes_angular": p.l,
                "node_positions": np.asarray(nodes, dtype=float).tolist(),
            })
        except Exception as e:
            return jsonify({"error": str(e), "trace": traceback.format_exc()}), 500

    return app


def main():
    setup_logging(config.LOG_LEVEL)
    app = create_app()
    print("\n" + "="*60)
    print("  Hydrogen Radial Shell Point-Cloud Server")
    print("="*60)
    print(f"  Shells: {config.LAYER_COUNT}, angular grid: {config.POLAR_STEPS}x{config.AZIMUTH_STEPS}")
    print(f"\n  Server running at http://{config.HOST}:{config.PORT}")
    print("  Keep this terminal running.")
    print("="*60 + "\n")
    # one request at a time: every edit runs the full pipeline to completion
    app.run(host=config.HOST, port=config.PORT, debug=False, threaded=False)


if __name__ == '__main__':
    main()
