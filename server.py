#!/usr/bin/env python3

import json
import logging
from functools import wraps

from bottle import Bottle, HTTPResponse, abort, request, response, static_file

import settings
from diarender import ConversionError, DiagramRenderer, RenderConfig, RenderError, RenderInterrupted
from diarender.renderer import IMAGES_DIR, PLACEHOLDER_PATH

app = application = Bottle()

# Configure logging
level = logging.getLevelName(settings.LOG_LEVEL)
logging.basicConfig(filename=settings.LOG_FILE, level=level)

EXPORT_PATH = '/dia-export'

render_config = RenderConfig.from_env()
renderer = DiagramRenderer.from_config(render_config)


def log(msg):
    logging.debug(msg)


def allow_cross_origin(func):
    """Decorate a view function to allow cross domain access."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            result = func(*args, **kwargs)
        except HTTPResponse as r:
            r.set_header('Access-Control-Allow-Origin', '*')
            raise
        (result if isinstance(result, HTTPResponse) else response) \
            .set_header('Access-Control-Allow-Origin', '*')
        return result
    return wrapper


def parse_dimension(value, name):
    """Parse a width or height query parameter, 0 meaning unspecified."""
    if value in (None, ''):
        return 0
    try:
        dimension = int(value)
    except ValueError:
        abort(400, f"Invalid {name}: {value!r}")
    if dimension < 0:
        abort(400, f"Invalid {name}: {value!r}")
    return dimension


@app.route(EXPORT_PATH + '/<path:path>')
@allow_cross_origin
def dia_export(path):
    """Serve the PNG export named by the path, exporting it first if stale."""
    address = '/' + path
    try:
        export = renderer.export_address(address)
    except ConversionError as e:
        logging.error(f"Export failed for {address}: {e}")
        abort(500, f"Export failed: {address}")
    except RenderInterrupted as e:
        logging.warning(f"Export wait abandoned for {address}: {e}")
        abort(503, f"Export busy: {address}")

    if export is None:
        log(f"Export not found: {address}")
        abort(404, f"Not found: {address}")

    log(f"Serving export: {export.file_path}")
    return static_file(
        export.file_path.name,
        root=str(export.file_path.parent),
        mimetype='image/png'
    )


@app.route('/diarender/images/<filename>')
@allow_cross_origin
def image(filename):
    """Serve the images shipped with diarender, such as the placeholder."""
    return static_file(filename, root=str(IMAGES_DIR))


@app.route('/getdiaref')
@allow_cross_origin
def getdiaref():
    """Describe every density variant of a diagram as JSON.

    Query parameters: book, path, width, height (0 or absent: unspecified).
    When the diagram is missing, src points at the placeholder image.
    """
    book = request.query.book
    path = request.query.path
    if not path:
        abort(400, "Missing path")
    width = parse_dimension(request.query.width, 'width')
    height = parse_dimension(request.query.height, 'height')

    try:
        exports = renderer.render_all(book, path, width, height)
    except RenderInterrupted as e:
        logging.warning(f"Export wait abandoned for {book}{path}: {e}")
        abort(503, f"Export busy: {book}{path}")
    except RenderError as e:
        logging.error(f"Export failed for {book}{path}: {e}")
        abort(500, f"Export failed: {book}{path}")

    display_width, display_height = renderer.display_size(exports, width, height)
    body = {
        'src': request.script_name.rstrip('/') + PLACEHOLDER_PATH,
        'width': display_width,
        'height': display_height,
        'variants': [],
    }
    if exports:
        for density, export in zip(renderer.densities, exports):
            url = (
                request.script_name.rstrip('/')
                + EXPORT_PATH
                + renderer.variant_address(book, path, width, height, density)
            )
            body['variants'].append({
                'density': density,
                'url': url,
                'width': export.width,
                'height': export.height,
            })
        body['src'] = body['variants'][0]['url']

    response.content_type = 'application/json'
    return json.dumps(body, indent=4, sort_keys=True)


@app.route('/')
def main_page():
    log("Hit root")
    return 'Dia export server'


if __name__ == '__main__':
    from bottle import run
    log("Starting up....")
    for error in render_config.validate():
        logging.error(error)

    run(app=application,
        host=settings.HOST,
        port=settings.PORT,
        server=settings.SERVER,
        debug=settings.DEBUG_APP,
        reloader=settings.DEBUG_APP
    )

    renderer.close()
    log("Exiting.")
