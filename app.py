import os
import logging
from datetime import timedelta
from rich.logging import RichHandler
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
import matplotlib
matplotlib.use("Agg")

from qce.errors import EvaluationError
from qce.models import init_db, get_db
from routes.auth_routes import auth_bp
from routes.student_routes import student_bp
from routes.supervisor_routes import supervisor_bp
from routes.qce_routes import qce_bp
from routes.zonal_routes import zonal_bp

from config import (
    MAX_FILE_SIZE,
    SESSION_TIMEOUT_MINUTES,
    UPLOAD_FOLDER,
)
from asgiref.wsgi import WsgiToAsgi

# Configure rich logging
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
)

logging.root.handlers = [
    RichHandler(rich_tracebacks=True, show_path=True, tracebacks_show_locals=False,
                log_time_format="[%b %d, %Y, %I:%M:%S %p]",
                )
]
logger = logging.getLogger("qce")

app = Flask(__name__)
app.secret_key = os.environ.get('SECRET_KEY', 'change-me-in-production')
app.config['MAX_CONTENT_LENGTH'] = MAX_FILE_SIZE
app.config['PERMANENT_SESSION_LIFETIME'] = timedelta(minutes=SESSION_TIMEOUT_MINUTES)
app.config['SESSION_COOKIE_HTTPONLY'] = True

# Register blueprints
app.register_blueprint(auth_bp)
app.register_blueprint(student_bp)
app.register_blueprint(supervisor_bp)
app.register_blueprint(qce_bp)
app.register_blueprint(zonal_bp)

# Ensure upload folder exists
os.makedirs(UPLOAD_FOLDER, exist_ok=True)

asgi_app = WsgiToAsgi(app)


@app.errorhandler(EvaluationError)
def handle_evaluation_error(e):
    """Business and validation failures: the message goes to the user verbatim."""
    return jsonify({
        'success': False,
        'message': e.message
    }), e.status_code


@app.errorhandler(413)
def handle_too_large(e):
    return jsonify({
        'success': False,
        'message': f'File too large. Maximum upload size is {MAX_FILE_SIZE // (1024 * 1024)}MB'
    }), 413


@app.errorhandler(Exception)
def handle_unexpected(e):
    if isinstance(e, HTTPException):
        return jsonify({
            'success': False,
            'message': e.description
        }), e.code
    logger.exception(f"Unhandled error: {e}")
    return jsonify({
        'success': False,
        'message': 'Server error, please try again later.'
    }), 500


@app.route("/api/healthz")
def healthz():
    try:
        with get_db() as conn:
            conn.execute('SELECT 1')
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return jsonify({
            'success': False,
            'status': 'unavailable'
        }), 503
    return jsonify({
        'success': True,
        'status': 'ok'
    })


if __name__ == "__main__":
    logger.info("Initializing database...")
    init_db()
    logger.info("Database initialized")

    import uvicorn
    host = os.environ.get('QCE_HOST', '127.0.0.1')
    port = int(os.environ.get('QCE_PORT', '5000'))
    logger.info(f"Starting server on {host}:{port}")
    uvicorn.run(asgi_app, host=host, port=port, log_config=None)
