"""Flask app for previewing generated queries and parameters."""

from flask import Flask, request, jsonify, Response, current_app
from werkzeug.exceptions import HTTPException
from pg_builder import json_select, json_aggregate, load_resources, dialect_from_url, UnknownResourceError
from pg_builder.json_handler import query_args_payload
from typing import Dict, Any, Mapping
from config import QUERY_CONFIG, setup_logging, get_logger

app = Flask(__name__)
app.config['QUERY'] = dict(QUERY_CONFIG)
logger = get_logger(__name__)


def get_resources() -> Mapping[str, Any]:
    """Load resource mappings once per app."""
    if 'RESOURCES' not in current_app.config:
        cfg = current_app.config['QUERY']
        current_app.config['RESOURCES'] = load_resources(cfg['mappings_path'], cfg['schema'])
    return current_app.config['RESOURCES']


def get_payload() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValueError('Request body must be a JSON object')
    return payload


def resolve_dialect(payload: Mapping[str, Any]) -> str:
    """Dialect of the configured connection; a differing payload dialect is overridden."""
    dialect = dialect_from_url(current_app.config['QUERY']['conn_str'])
    requested = payload.get('dialect')
    if requested and str(requested).lower() != dialect:
        logger.warning(f"Overriding dialect from {requested} to {dialect}")
    return dialect


def builder_options() -> Dict[str, Any]:
    cfg = current_app.config['QUERY']
    return {'debug': cfg['debug'], 'max_conditions': cfg['max_conditions']}


@app.errorhandler(UnknownResourceError)
def handle_unknown_resource(e: UnknownResourceError) -> Response:
    """Handle unknown resource with 404 response."""
    return jsonify({'error': str(e)}), 404


@app.errorhandler(ValueError)
def handle_value_error(e: ValueError) -> Response:
    """Handle ValueError with 400 response."""
    return jsonify({'error': str(e)}), 400


@app.errorhandler(Exception)
def handle_general_error(e: Exception) -> Response:
    """Handle unexpected errors with 500 response."""
    if isinstance(e, HTTPException):
        return e
    logger.error(f'Server error: {e}')
    return jsonify({'error': 'Internal server error'}), 500


@app.route('/query/select', methods=['POST'])
def select_query():
    """Generate SELECT and COUNT queries from JSON payload."""
    payload = get_payload()
    result = json_select(payload, get_resources(), resolve_dialect(payload),
                         default_limit=current_app.config['QUERY']['default_limit'], **builder_options())
    return jsonify(result)


@app.route('/query/aggregate', methods=['POST'])
def aggregate_query():
    """Generate aggregate query from JSON payload."""
    payload = get_payload()
    return jsonify(json_aggregate(payload, get_resources(), resolve_dialect(payload), **builder_options()))


@app.route('/query/<resource>', methods=['GET'])
def resource_query(resource: str):
    """Generate SELECT and COUNT queries from query-string filters."""
    payload = query_args_payload(resource, request.args.to_dict())
    result = json_select(payload, get_resources(), resolve_dialect(payload),
                         default_limit=current_app.config['QUERY']['default_limit'], **builder_options())
    return jsonify(result)


if __name__ == '__main__':
    setup_logging()
    app.run(host='0.0.0.0', port=5000, debug=QUERY_CONFIG['debug'])
