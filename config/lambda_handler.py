"""
AWS Lambda entry point.

Translates an API Gateway proxy event (REST API v1 or HTTP API v2 payload) into
a WSGI call on the same Django application ``config.wsgi`` serves, and the WSGI
response back into a proxy result. Routing, auth and error handling all stay in
Django.
"""
import base64
import io
import json
import logging
import sys
from urllib.parse import unquote_to_bytes, urlencode

from config.wsgi import application

logger = logging.getLogger(__name__)

TEXT_CONTENT_TYPES = ('application/json', 'application/xml', 'application/javascript', 'text/')


def _is_v2(event):
    return event.get('version') == '2.0'


def _method(event):
    if _is_v2(event):
        return event['requestContext']['http']['method']
    return event.get('httpMethod', 'GET')


def _path(event):
    return event.get('rawPath') if _is_v2(event) else event.get('path', '/')


def _query_string(event):
    if _is_v2(event):
        return event.get('rawQueryString', '')
    multi = event.get('multiValueQueryStringParameters')
    if multi:
        return urlencode([(key, value) for key, values in multi.items() for value in values])
    return urlencode(event.get('queryStringParameters') or {})


def _source_ip(event):
    context = event.get('requestContext') or {}
    if _is_v2(event):
        return context.get('http', {}).get('sourceIp', '')
    return context.get('identity', {}).get('sourceIp', '')


def _body(event):
    body = event.get('body') or ''
    if event.get('isBase64Encoded'):
        return base64.b64decode(body)
    return body.encode('utf-8')


def build_environ(event):
    """WSGI environ for an API Gateway proxy event."""
    headers = {key.lower(): value for key, value in (event.get('headers') or {}).items()}
    if _is_v2(event) and event.get('cookies'):
        headers['cookie'] = '; '.join(event['cookies'])

    body = _body(event)
    host = headers.get('host', 'lambda')
    environ = {
        'REQUEST_METHOD': _method(event),
        'SCRIPT_NAME': '',
        'PATH_INFO': unquote_to_bytes(_path(event) or '/').decode('latin-1'),
        'QUERY_STRING': _query_string(event),
        'SERVER_NAME': host.split(':')[0],
        'SERVER_PORT': headers.get('x-forwarded-port', '443'),
        'SERVER_PROTOCOL': 'HTTP/1.1',
        'REMOTE_ADDR': _source_ip(event),
        'CONTENT_TYPE': headers.get('content-type', ''),
        'CONTENT_LENGTH': str(len(body)),
        'wsgi.version': (1, 0),
        'wsgi.url_scheme': headers.get('x-forwarded-proto', 'https'),
        'wsgi.input': io.BytesIO(body),
        'wsgi.errors': sys.stderr,
        'wsgi.multithread': False,
        'wsgi.multiprocess': False,
        'wsgi.run_once': False,
    }
    for key, value in headers.items():
        if key in ('content-type', 'content-length'):
            continue
        environ['HTTP_' + key.upper().replace('-', '_')] = value
    return environ


def _encode_body(body, content_type):
    if not body:
        return '', False
    if content_type.startswith(TEXT_CONTENT_TYPES):
        try:
            return body.decode('utf-8'), False
        except UnicodeDecodeError:
            pass
    return base64.b64encode(body).decode('ascii'), True


def handler(event, context):
    """Lambda handler: API Gateway proxy event in, proxy result out."""
    response_status = {}

    def start_response(status_line, response_headers, exc_info=None):
        response_status['code'] = int(status_line.split(' ', 1)[0])
        response_status['headers'] = response_headers

    try:
        environ = build_environ(event)
        logger.info("Lambda request %s %s", environ['REQUEST_METHOD'], environ['PATH_INFO'])
        result = application(environ, start_response)
        try:
            body = b''.join(result)
        finally:
            if hasattr(result, 'close'):
                result.close()
    except Exception:
        logger.exception("Unhandled error in lambda handler")
        return {
            'statusCode': 500,
            'headers': {'Content-Type': 'application/json'},
            'body': json.dumps({"error": "Internal Server Error", "code": "internal_error"}),
        }

    headers = {}
    cookies = []
    for name, value in response_status.get('headers', []):
        if name.lower() == 'set-cookie':
            cookies.append(value)
        else:
            headers[name] = value

    encoded, is_base64 = _encode_body(body, headers.get('Content-Type', ''))
    result = {
        'statusCode': response_status.get('code', 500),
        'headers': headers,
        'body': encoded,
        'isBase64Encoded': is_base64,
    }
    if cookies:
        if _is_v2(event):
            result['cookies'] = cookies
        else:
            result['multiValueHeaders'] = {'Set-Cookie': cookies}
    return result
