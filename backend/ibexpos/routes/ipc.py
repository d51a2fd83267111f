# Overview: HTTP transport for IPC channels; authorizes, dispatches and maps errors to JSON.

import inspect

from flask import Blueprint, current_app, jsonify, request

from ibexpos import messages
from ibexpos.decorators import authorize
from ibexpos.extensions import db
from ibexpos.ipc import channel_names, get_channel
from ibexpos.services.errors import ServiceError


ipc_bp = Blueprint("ipc", __name__, url_prefix="/api/ipc")


@ipc_bp.get("")
def list_channels():
    return jsonify(channel_names()), 200


@ipc_bp.post("/<path:name>")
def invoke(name: str):
    """
    Call a channel with {"args": [...]} as positional arguments.

    Business failures answer {"error": message} with the error's status;
    anything unexpected is logged and answered with the channel's own
    failure text and 500.
    """
    ch = get_channel(name)
    if ch is None:
        return jsonify({"error": f"Unknown channel: {name}"}), 404

    try:
        authorize(ch.access)
    except ServiceError as e:
        return jsonify({"error": e.message}), e.status_code

    body = request.get_json(silent=True) or {}
    args = body.get("args", []) if isinstance(body, dict) else None
    if args is None:
        args = []
    if not isinstance(args, list):
        return jsonify({"error": "args must be a list"}), 400

    try:
        inspect.signature(ch.handler).bind(*args)
    except TypeError:
        return jsonify({"error": f"Invalid arguments for {name}"}), 400

    try:
        result = ch.handler(*args)
    except ServiceError as e:
        db.session.rollback()
        return jsonify({"error": e.message}), e.status_code
    except Exception:
        db.session.rollback()
        current_app.logger.exception("IPC channel %s failed", name)
        return jsonify({"error": ch.failure or messages.INTERNAL_ERROR}), 500

    return jsonify(result), 200
