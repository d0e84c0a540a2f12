""" Post submission and the read-only board views.

Everything a request needs (client id, csrf token, the upload) comes in
through PostRequest; nothing here reads flask globals.
"""
import enum
import time
import logging
from dataclasses import dataclass
from typing import Optional

from config import cfg
from db_main import page_window
import errors as err
import gen_helpers as gh

logger = logging.getLogger("adelia.posting")


class Stage(enum.Enum):
    VALIDATING = 'validating'
    RATE_LIMITING = 'rate_limiting'
    INGESTING = 'ingesting'
    PERSISTING = 'persisting'
    BUMPING = 'bumping'


@dataclass
class Upload:
    data: bytes
    declared_size: int
    mime_hint: Optional[str] = None


@dataclass
class PostRequest:
    parent: int
    client_id: str
    csrf_token: str
    message: str
    title: str = ''
    upload: Optional[Upload] = None

    @property
    def is_thread(self):
        return self.parent == 0


def clean(text, max_length):
    """ trims the edges and caps the length; newlines inside are kept """
    return (text or '').strip()[:max_length]


class ThreadService():
    def __init__(self, store, conf=cfg, clock=time.time):
        self.store = store
        self.conf = conf
        self.clock = clock

    def submit(self, req, csrf):
        """ handles the entire post upload process, and validation
            Args:
                req (PostRequest): the post
                csrf: anything with verify(token) -> bool
            Returns:
                int: id of the new post
        """
        stage = Stage.VALIDATING
        try:
            title, message = self._validate(req, csrf)

            stage = Stage.RATE_LIMITING
            now = int(self.clock())
            if not gh.can_post(self.store, req.client_id, now, self.conf.post_cooldown):
                raise err.RateLimited('You are posting too quickly. Please wait before posting again.')

            filename = thumbname = None
            if req.upload is not None:
                stage = Stage.INGESTING
                filename, thumbname = gh.save_image(req.upload.data,
                                                    req.upload.declared_size,
                                                    req.upload.mime_hint,
                                                    self.conf)

            stage = Stage.PERSISTING
            try:
                post_id = self.store.create_post(req.parent, req.client_id,
                                                 title, message,
                                                 filename, thumbname, now=now)
            except err.PersistenceError:
                if filename:
                    gh.delete_file(filename, thumbname, self.conf)
                raise
        except err.AdeliaError as e:
            self._log_rejection(stage, req, e)
            raise

        if not req.is_thread:
            self._bump(req.parent, post_id, now)
        logger.info("post %s created in thread %s", post_id, req.parent or post_id)
        return post_id

    def _validate(self, req, csrf):
        if not csrf.verify(req.csrf_token):
            raise err.Forbidden('Invalid CSRF token.')

        title = None
        if req.is_thread:
            title = clean(req.title, self.conf.title_max_length)
            if not title:
                raise err.ValidationError('Title and message cannot be empty.')
        message = clean(req.message, self.conf.post_max_length)
        if not message:
            raise err.ValidationError('Title and message cannot be empty.')

        if not req.is_thread and self.store.get_thread(req.parent) is None:
            raise err.ThreadNotFound(req.parent)
        return title, message

    def _bump(self, thread_id, post_id, now):
        # the reply is already committed; a lost bump only costs sort order
        try:
            self.store.bump_thread(thread_id, now)
        except err.PersistenceError:
            logger.exception("post %s saved but %s thread %s failed",
                             post_id, Stage.BUMPING.value, thread_id)

    def _log_rejection(self, stage, req, e):
        if isinstance(e, err.ServerFault):
            logger.error("post from %s to thread %s failed while %s: %s",
                         req.client_id, req.parent, stage.value, e.message)
        else:
            logger.info("post from %s to thread %s rejected while %s: %s",
                        req.client_id, req.parent, stage.value, e.message)

    def board_page(self, page=1):
        """ One index page of the board
            Returns:
                dict: threads [(thread, reply_count)], page, total_pages, offset, limit
        """
        page = max(1, page)
        per_page = self.conf.threads_per_page
        window = page_window(page, per_page, self.store.get_thread_count())
        data = dict(window)
        data['page'] = page
        data['threads'] = self.store.get_thread_page(page, per_page)
        return data

    def thread_view(self, thread_id):
        thread = self.store.get_thread(thread_id)
        if thread is None:
            raise err.ThreadNotFound(thread_id)
        replies = self.store.get_replies(thread_id)
        return {
            'thread': thread,
            'replies': replies,
            'reply_count': self.store.get_reply_count(thread_id)}
