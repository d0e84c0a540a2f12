from config import cfg
from db_main import PostStore
from posting import ThreadService, PostRequest, Upload
import gen_helpers as gh
import errors as err

from flask import Flask, request, session, jsonify
from flask import url_for, redirect, send_from_directory

import os
import hmac
import time
import secrets

# columns the outside world gets to see; client_id stays in the db
PUBLIC_FIELDS = ('id', 'parent', 'timestamp', 'bumped', 'title', 'message', 'file', 'thumb')


class SessionCsrf():
    """ csrf tokens kept in the flask session cookie """

    def issue_token(self):
        token = secrets.token_hex(32)
        session['csrf_token'] = token
        return token

    def verify(self, token):
        expected = session.get('csrf_token')
        if not expected:
            return False
        return hmac.compare_digest(expected.encode('utf-8'), (token or '').encode('utf-8'))


def create_app(conf=None, store=None, clock=time.time):
    conf = conf or cfg
    app = Flask(__name__)
    app.config['MAX_CONTENT_LENGTH'] = 16 * 1024 * 1024
    app.secret_key = conf.secret_key or os.urandom(24)

    store = store or PostStore()
    service = ThreadService(store, conf, clock)
    csrf = SessionCsrf()

    def _public(post):
        data = {k: post[k] for k in PUBLIC_FIELDS}
        if post['file']:
            data['file_url'] = url_for('upload', filename=post['file'])
            data['thumb_url'] = url_for('thumb', filename=post['thumb'])
        return data

    # url_for('index') builds the rule registered first, which is the bottom one
    @app.route('/index', methods=['GET'])
    @app.route('/', methods=['GET'])
    def index():
        page = request.args.get('page', 1)
        try:
            page = int(page)
        except ValueError: # ie ?page=TOMFOOLERY
            page = 1
        data = service.board_page(page)
        threads = list()
        for thread, count in data['threads']:
            t = _public(thread)
            t['reply_count'] = count
            t['preview'] = gh.truncate_message(thread['message'], conf.max_lines)
            t['latest_replies'] = [_public(r) for r in
                                   store.get_latest_replies(thread['id'], conf.replies_preview)]
            threads.append(t)
        return jsonify(
                board=conf.board_desc,
                page=data['page'],
                total_pages=data['total_pages'],
                threads=threads,
                csrf_token=csrf.issue_token())

    @app.route('/thread/<int:threadid>', methods=['GET'])
    def thread(threadid):
        data = service.thread_view(threadid)
        return jsonify(
                thread=_public(data['thread']),
                replies=[_public(r) for r in data['replies']],
                reply_count=data['reply_count'],
                csrf_token=csrf.issue_token())

    @app.route('/post', methods=['POST'])
    def post():
        parent = request.form.get('parent', default=0, type=int)
        req = PostRequest(
                parent=parent,
                client_id=request.environ.get('HTTP_X_REAL_IP', request.remote_addr),
                csrf_token=request.form.get('csrf_token', default='', type=str),
                title=request.form.get('name', default='', type=str),
                message=request.form.get('message', default='', type=str),
                upload=_read_upload(request.files.get('file'), conf))
        pid = service.submit(req, csrf)
        if parent == 0:
            return redirect(url_for('index'))
        return redirect(url_for('thread', threadid=parent, _anchor='post%s' % (pid,)))

    @app.route('/uploads/<path:filename>', methods=['GET'])
    def upload(filename):
        return send_from_directory(os.path.abspath(conf.upload_dir), filename)

    @app.route('/thumbs/<path:filename>', methods=['GET'])
    def thumb(filename):
        return send_from_directory(os.path.abspath(conf.thumb_dir), filename)

    @app.errorhandler(err.AdeliaError)
    def handle_adelia_error(error):
        return jsonify(error=error.public_message), error.status

    return app


def _read_upload(filestorage, conf):
    """ Pulls the file out of the form
    Oversized files are not even read; ingestion rejects them on the size alone.
        Returns:
            Upload: None if no file was sent
    """
    if filestorage is None or filestorage.filename == '':
        return None
    stream = filestorage.stream
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    data = stream.read() if size <= conf.max_file_size else b''
    return Upload(data=data, declared_size=size, mime_hint=filestorage.mimetype)
