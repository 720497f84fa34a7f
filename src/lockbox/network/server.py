"""
HTTP gateway for LockBox:
- Serves a small JSON API backed by lockbox.core.file_manager
- Optionally advertises itself with Zeroconf (_lockbox._tcp.local.) when started with --advertise

Routes:
    POST /encrypt          multipart: file, password
    -> stores <file>.enc

    POST /decrypt          multipart: file, password
    -> decrypts an uploaded envelope, stores <file minus .enc>.dec

    POST /decrypt-file     json: filename, password
    -> decrypts an artifact already on the server

    GET  /files            -> encrypted artifacts
    GET  /dec-files        -> decrypted artifacts
    GET  /download?name=   -> artifact bytes as an attachment

    GET  /social, POST /save-social
    -> social links kept in social.json

Usage:
    python -m lockbox.network.server --data-dir ./data --port 3000
"""

import argparse
import logging
import socket
from pathlib import Path
from typing import Optional

from flask import Flask, jsonify, request, send_file
from zeroconf import ServiceInfo, Zeroconf

from ..config import Settings
from ..core.exceptions import (
    ArtifactNotFoundError,
    AuthenticationError,
    InvalidInputError,
    LockBoxError,
)
from ..core.file_manager import FileManager
from ..core.profile import ProfileStore
from ..core.storage import ArtifactStore
from ..logging_config import configure_logging
from ..security.kdf import kdf_params_to_dict

logger = logging.getLogger(__name__)

SERVICE_TYPE = "_lockbox._tcp.local."

DECRYPT_FAILED = "Decryption failed. Wrong password or corrupted file"


def create_app(settings: Optional[Settings] = None) -> Flask:
    """Build the gateway app around a FileManager rooted at ``settings.data_dir``."""
    settings = settings or Settings.from_env()
    store = ArtifactStore(settings.data_dir)
    fm = FileManager(store)
    profile = ProfileStore(store)

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = settings.max_content_length
    app.extensions["lockbox"] = {"fm": fm, "profile": profile, "settings": settings}

    def _json_body() -> dict:
        body = request.get_json(silent=True)
        if body is None:
            return {}
        if not isinstance(body, dict):
            raise InvalidInputError("Request body must be a JSON object")
        return body

    def _text(body: dict, field: str, message: str) -> str:
        value = body.get(field)
        if value is None or value == "":
            raise InvalidInputError(message)
        if not isinstance(value, str):
            raise InvalidInputError(f"Invalid {field}")
        return value

    def _uploaded():
        up = request.files.get("file")
        if up is None or not up.filename:
            raise InvalidInputError("No file uploaded")
        password = request.form.get("password", "")
        if not password:
            raise InvalidInputError("No password provided")
        return up.filename, up.read(), password

    @app.errorhandler(InvalidInputError)
    def _invalid(e):
        return jsonify({"message": str(e)}), 400

    @app.errorhandler(AuthenticationError)
    def _refused(e):
        return jsonify({"message": DECRYPT_FAILED}), 400

    @app.errorhandler(ArtifactNotFoundError)
    def _missing(e):
        return jsonify({"message": "File not found"}), 404

    @app.errorhandler(LockBoxError)
    def _failed(e):
        logger.error("Request failed: %s", e)
        return jsonify({"message": "Operation failed"}), 500

    @app.post("/encrypt")
    def encrypt():
        filename, data, password = _uploaded()
        out_name = fm.encrypt_file(filename, data, password)
        return jsonify({"message": f"File encrypted! Saved as {out_name}", "filename": out_name})

    @app.post("/decrypt")
    def decrypt():
        filename, data, password = _uploaded()
        out_name = fm.decrypt_file(filename, data, password)
        return jsonify({"message": f"File decrypted! Saved as {out_name}", "filename": out_name})

    @app.post("/decrypt-file")
    def decrypt_file():
        body = _json_body()
        filename = _text(body, "filename", "No filename provided")
        password = _text(body, "password", "No password provided")
        out_name = fm.decrypt_artifact(filename, password)
        return jsonify({"message": f"File decrypted! Saved as {out_name}", "filename": out_name})

    @app.get("/files")
    def files():
        return jsonify({"files": fm.list_encrypted()})

    @app.get("/dec-files")
    def dec_files():
        return jsonify({"files": fm.list_decrypted()})

    @app.get("/download")
    def download():
        name = request.args.get("name", "")
        if not name:
            raise InvalidInputError("Missing name")
        path = fm.download_path(name)
        return send_file(path, as_attachment=True, download_name=name)

    @app.get("/social")
    def social():
        return jsonify(profile.load_social())

    @app.post("/save-social")
    def save_social():
        body = _json_body()
        links = {}
        for field in ("github", "linkedin"):
            value = body.get(field) or ""
            if not isinstance(value, str):
                raise InvalidInputError(f"Invalid {field}")
            links[field] = value
        profile.save_social(**links)
        return jsonify({"message": "Saved"})

    return app


def get_local_ip():
    """A trick to get the current IP using a UDP socket."""
    s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        s.connect(("8.8.8.8", 80))
        return s.getsockname()[0]
    except OSError:
        return "127.0.0.1"
    finally:
        s.close()


# Zeroconf advertisement
def advertise_service(name, port, service=SERVICE_TYPE):
    """Advertise this gateway using Zeroconf."""
    zeroconf = Zeroconf()
    local_ip = get_local_ip()
    props = {"name": name, "version": "1.0", "path": "/"}

    info = ServiceInfo(
        service,
        f"{name}.{service}",
        addresses=[socket.inet_aton(local_ip)],
        port=port,
        properties=props,
        server=f"{socket.gethostname()}.local.",
    )
    zeroconf.register_service(info)
    logger.info("Zeroconf service registered: %s @ %s:%d (%s)", name, local_ip, port, service)
    return zeroconf, info


def withdraw_service(zeroconf, info) -> None:
    logger.info("Unregistering Zeroconf service...")
    try:
        zeroconf.unregister_service(info)
    finally:
        zeroconf.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="LockBox HTTP gateway")
    add_server_arguments(parser)
    return parser


def add_server_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--data-dir", default=None)
    parser.add_argument("--host", default=None)
    parser.add_argument("--port", type=int, default=None)
    parser.add_argument("--name", default=None)
    parser.add_argument("--advertise", action="store_true", help="announce the gateway on the LAN via Zeroconf")
    # SUPPRESS keeps a subparser from clobbering a parent --log-level
    parser.add_argument("--log-level", default=argparse.SUPPRESS)


def serve(args: argparse.Namespace) -> None:
    log_level = getattr(args, "log_level", None)
    settings = Settings.from_env().override(
        data_dir=Path(args.data_dir) if args.data_dir else None,
        host=args.host,
        port=args.port,
        log_level=log_level.upper() if log_level else None,
    )
    configure_logging(settings.log_level)

    app = create_app(settings)
    logger.info("Serving artifacts from %s", app.extensions["lockbox"]["fm"].data_dir)
    logger.info("KDF parameters: %s", kdf_params_to_dict())

    name = args.name or f"LockBox-{socket.gethostname()}"
    zeroconf = info = None
    if args.advertise:
        zeroconf, info = advertise_service(name, settings.port)

    try:
        app.run(host=settings.host, port=settings.port, threaded=True)
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    finally:
        if zeroconf is not None:
            withdraw_service(zeroconf, info)


# Main entry point
def main(argv=None):
    serve(build_parser().parse_args(argv))


if __name__ == "__main__":
    main()
