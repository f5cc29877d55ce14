"""Coordinator control plane (Flask).

Lets the downstream lifecycle manager and the upstream observer drive the
coordinator over HTTP. Every call goes through one lock, since the
coordinator itself is single-threaded.
"""

import logging
import os
import threading
from collections import deque

from flask import Flask, jsonify, request
from flask_cors import CORS

from tether_core import AllocationExhausted, PrefixConflict, Role
from tether_core.serialization import (
    conflict_to_dict,
    reservation_to_dict,
    snapshot_from_dict,
)
from .config import load_config
from .service import PrivateAddressCoordinator

logger = logging.getLogger("tether.server")

# Oldest signals are dropped once this many are waiting to be drained.
MAX_PENDING_CONFLICTS = 1024


def create_app(
    coordinator: PrivateAddressCoordinator = None,
    max_pending: int = MAX_PENDING_CONFLICTS,
) -> Flask:
    app = Flask(__name__)
    CORS(app)

    coordinator = coordinator or PrivateAddressCoordinator(load_config())
    lock = threading.Lock()
    pending: deque[PrefixConflict] = deque(maxlen=max_pending)

    # Runs inside the lock held by update_upstream.
    coordinator.add_conflict_listener(pending.append)

    app.extensions["coordinator"] = coordinator

    def _parse_role(raw):
        try:
            return Role.parse(raw), None
        except ValueError as e:
            return None, (jsonify({"error": str(e)}), 400)

    @app.route("/downstreams", methods=["GET"])
    def list_downstreams():
        with lock:
            reservations = coordinator.reservations()
        return jsonify({"reservations": [reservation_to_dict(r) for r in reservations]}), 200

    @app.route("/downstreams/<role>", methods=["POST"])
    def request_downstream(role):
        role, error = _parse_role(role)
        if error:
            return error
        data = request.get_json(silent=True) or {}
        reuse_last = data.get("reuse_last", False) if isinstance(data, dict) else None
        if not isinstance(reuse_last, bool):
            return jsonify({"error": "'reuse_last' must be a boolean"}), 400
        try:
            with lock:
                address = coordinator.request_downstream_address(role, reuse_last=reuse_last)
        except AllocationExhausted as e:
            return jsonify({"error": str(e)}), 503
        return jsonify({
            "role": role.value,
            "address": str(address),
            "prefix": str(address.network),
        }), 200

    @app.route("/downstreams/<role>", methods=["DELETE"])
    def release_downstream(role):
        role, error = _parse_role(role)
        if error:
            return error
        with lock:
            held = any(r.role is role for r in coordinator.reservations())
            coordinator.release_downstream(role)
        return jsonify({"released": held}), 200

    @app.route("/upstreams", methods=["GET"])
    def list_upstreams():
        with lock:
            upstreams = coordinator.upstream_prefixes()
        return jsonify({"upstreams": upstreams}), 200

    @app.route("/upstreams/<network_id>", methods=["PUT"])
    def update_upstream(network_id):
        try:
            snapshot = snapshot_from_dict(request.get_json(silent=True) or {}, network_id=network_id)
        except ValueError as e:
            return jsonify({"error": str(e)}), 400
        with lock:
            roles = coordinator.update_upstream_prefix(snapshot)
        return jsonify({"conflicts": [r.value for r in roles]}), 200

    @app.route("/upstreams/<network_id>", methods=["DELETE"])
    def remove_upstream(network_id):
        with lock:
            known = network_id in coordinator.upstream_prefixes()
            coordinator.remove_upstream_prefix(network_id)
        return jsonify({"removed": known}), 200

    @app.route("/conflicts", methods=["GET"])
    def drain_conflicts():
        with lock:
            drained = list(pending)
            pending.clear()
        return jsonify({"conflicts": [conflict_to_dict(c) for c in drained]}), 200

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format='%(asctime)s [%(name)s] %(message)s')
    app = create_app()
    port = int(os.getenv("PORT", 8790))
    app.run(host=os.getenv("HOST", "127.0.0.1"), port=port, debug=False)
