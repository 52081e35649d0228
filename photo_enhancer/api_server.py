#!/usr/bin/env python3
"""
Photo Enhancer API Server
Session-based endpoints that mirror the editor screen: drop an image, tune the
sliders, enhance, drag the before/after divider, download or close.
"""

import os
import logging
import uuid
from io import BytesIO
from typing import Dict, Optional
from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from flask import Flask, request, jsonify, send_file
from flask_cors import CORS
from werkzeug.utils import secure_filename

# --- Centralized Logging Configuration ---
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
    datefmt='%H:%M:%S'
)

from .models.errors import InvalidInputError, PipelineNotReadyError
from .services.image_service import ImageService
from .services.comparison_service import ComparisonService
from .services.photo_editor_session import PhotoEditorSession

app = Flask(__name__)
CORS(app)  # Enable CORS for frontend communication

# Configuration
ALLOWED_EXTENSIONS = set(os.getenv("ALLOWED_EXTENSIONS", "png,jpg,jpeg,bmp,webp,tif,tiff").split(","))
MAX_CONTENT_LENGTH = int(os.getenv("MAX_UPLOAD_SIZE_MB", "50")) * 1024 * 1024

app.config['MAX_CONTENT_LENGTH'] = MAX_CONTENT_LENGTH

# Initialize services
image_service = ImageService()
comparison_service = ComparisonService()

logger = logging.getLogger(__name__)

# Session storage for editor state
sessions: Dict[str, PhotoEditorSession] = {}


def get_or_create_session(session_id: str = None) -> PhotoEditorSession:
    """Get existing session or create new one."""
    if session_id is None:
        session_id = str(uuid.uuid4())

    if session_id not in sessions:
        sessions[session_id] = PhotoEditorSession(session_id)

    return sessions[session_id]


def lookup_session(session_id: Optional[str]) -> Optional[PhotoEditorSession]:
    if not session_id:
        return None
    return sessions.get(session_id)


def allowed_file(filename: str) -> bool:
    """Check if file extension is allowed."""
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def json_body() -> dict:
    return request.get_json(silent=True) or {}


def invalid_session():
    return jsonify({'success': False, 'message': 'Invalid session'}), 400


def not_ready(e: PipelineNotReadyError):
    return jsonify({'success': False, 'message': str(e), 'state': e.state.value}), 409


def rejected_upload(session_id: Optional[str], message: str):
    """400 for an ignored upload; an existing session keeps its state."""
    session = lookup_session(session_id)
    return jsonify({
        'success': False,
        'session_id': session.session_id if session else None,
        'state': session.state.value if session else 'idle',
        'message': message
    }), 400


def png_response(png: bytes, download_name: str, as_attachment: bool = False):
    return send_file(BytesIO(png), mimetype='image/png',
                     as_attachment=as_attachment, download_name=download_name)


@app.route('/api/load-image', methods=['POST'])
def load_image():
    """Load a dropped/selected image into a session."""
    try:
        session_id = request.form.get('session_id')

        if 'image' not in request.files:
            return jsonify({'success': False, 'message': 'No image provided'}), 400

        file = request.files['image']
        if file.filename == '':
            return jsonify({'success': False, 'message': 'No file selected'}), 400

        # Rejected uploads must not create sessions
        filename = secure_filename(file.filename)
        if not image_service.is_image_mimetype(file.mimetype) or not allowed_file(filename):
            logger.info(f"Ignoring non-image upload '{filename}' ({file.mimetype})")
            return rejected_upload(session_id, 'Unsupported file type')

        try:
            bitmap = image_service.decode(file.read())
        except InvalidInputError as e:
            logger.info(f"Ignoring undecodable upload '{filename}': {e}")
            return rejected_upload(session_id, 'File could not be decoded as an image')

        session = get_or_create_session(session_id)
        session.load_bitmap(bitmap)

        logger.info(f"Image '{filename}' loaded into session {session.session_id}")
        return jsonify({'success': True, **session.snapshot()})

    except Exception as e:
        logger.error(f"Image loading error: {e}")
        return jsonify({'success': False, 'message': f'Error loading image: {str(e)}'}), 500


@app.route('/api/session/<session_id>', methods=['GET'])
def session_status(session_id):
    """Current state snapshot (poll this while processing)."""
    session = lookup_session(session_id)
    if session is None:
        return invalid_session()
    return jsonify({'success': True, **session.snapshot()})


@app.route('/api/settings', methods=['POST'])
def update_settings():
    """Update any of brightness / contrast / sharpness. Values are clamped."""
    try:
        body = json_body()
        session = lookup_session(body.get('session_id'))
        if session is None:
            return invalid_session()

        values = {k: body[k] for k in ('brightness', 'contrast', 'sharpness') if k in body}
        settings = session.update_settings(**values)
        return jsonify({'success': True, 'session_id': session.session_id, 'settings': settings.as_dict()})

    except (TypeError, ValueError) as e:
        return jsonify({'success': False, 'message': f'Invalid setting value: {e}'}), 400
    except Exception as e:
        logger.error(f"Settings error: {e}")
        return jsonify({'success': False, 'message': f'Error updating settings: {str(e)}'}), 500


@app.route('/api/enhance', methods=['POST'])
def enhance():
    """Trigger enhancement; ignored while processing or without an image."""
    try:
        session = lookup_session(json_body().get('session_id'))
        if session is None:
            return invalid_session()

        started = session.enhance()
        if not started:
            logger.info(f"Enhance ignored for session {session.session_id} in state {session.state.value}")
        return jsonify({'success': True, 'started': started, **session.snapshot()})

    except Exception as e:
        logger.error(f"Enhancement error: {e}")
        return jsonify({'success': False, 'message': f'Error in enhancement: {str(e)}'}), 500


@app.route('/api/return-to-settings', methods=['POST'])
def return_to_settings():
    session = lookup_session(json_body().get('session_id'))
    if session is None:
        return invalid_session()
    changed = session.return_to_settings()
    return jsonify({'success': changed, **session.snapshot()})


@app.route('/api/comparison', methods=['POST'])
def set_comparison():
    """Set the before/after divider position (0-100, clamped)."""
    try:
        body = json_body()
        session = lookup_session(body.get('session_id'))
        if session is None:
            return invalid_session()

        ratio = session.set_comparison_ratio(float(body.get('ratio', 50)))
        return jsonify({'success': True, 'session_id': session.session_id, 'comparison_ratio': ratio})

    except PipelineNotReadyError as e:
        return not_ready(e)
    except (TypeError, ValueError) as e:
        return jsonify({'success': False, 'message': f'Invalid ratio: {e}'}), 400


@app.route('/api/preview/<session_id>', methods=['GET'])
def preview(session_id):
    """PNG preview: view=original | enhanced | compare."""
    session = lookup_session(session_id)
    if session is None:
        return invalid_session()

    view = request.args.get('view', 'compare')
    try:
        if view == 'original':
            bitmap = session.source
            if bitmap is None:
                return jsonify({'success': False, 'message': 'No image loaded'}), 404
        elif view == 'enhanced':
            bitmap = session.get_final_bitmap()
        elif view == 'compare':
            original, enhanced, ratio = session.comparison_view()
            bitmap = comparison_service.render(original, enhanced, ratio)
        else:
            return jsonify({'success': False, 'message': f'Unknown view: {view}'}), 400

        return png_response(image_service.encode_png(bitmap), f'{view}.png')

    except PipelineNotReadyError as e:
        return not_ready(e)


@app.route('/api/download/<session_id>', methods=['GET'])
def download(session_id):
    """Download the enhanced image as PNG."""
    session = lookup_session(session_id)
    if session is None:
        return invalid_session()
    try:
        return png_response(session.export_png(), image_service.EXPORT_FILENAME, as_attachment=True)
    except PipelineNotReadyError as e:
        return not_ready(e)


@app.route('/api/reset', methods=['POST'])
def reset():
    """Close the current image. Settings are kept."""
    session = lookup_session(json_body().get('session_id'))
    if session is None:
        return invalid_session()
    session.reset()
    return jsonify({'success': True, **session.snapshot()})


@app.route('/api/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({
        'status': 'healthy',
        'message': 'Photo Enhancer API is running',
        'active_sessions': len(sessions)
    })


@app.route('/api/clear-session', methods=['POST'])
def clear_session():
    """Clear a session and free memory."""
    session_id = json_body().get('session_id')
    if session_id and session_id in sessions:
        sessions.pop(session_id).reset()
        return jsonify({'success': True, 'message': 'Session cleared'})
    return jsonify({'success': False, 'message': 'Session not found'})


@app.errorhandler(413)
def too_large(e):
    """Handle file too large error."""
    return jsonify({'error': f'File too large. Maximum size is {MAX_CONTENT_LENGTH // (1024 * 1024)}MB.'}), 413


@app.errorhandler(500)
def internal_error(e):
    """Handle internal server error."""
    logger.error(f"Internal server error: {e}")
    return jsonify({'error': 'Internal server error'}), 500


def main():
    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "5000"))

    logger.info("Starting Photo Enhancer API Server...")
    logger.info(f"Max upload size: {MAX_CONTENT_LENGTH // (1024 * 1024)}MB")
    logger.info(f"Listening on http://{host}:{port}")
    app.run(host=host, port=port, debug=False)


if __name__ == '__main__':
    main()
