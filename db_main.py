# project specific
from config import cfg
from db_meta import DB
import db_cud
import errors as err

#sqlalchemy
import sqlalchemy
from sqlalchemy.sql import func
from sqlalchemy import select, desc, asc

# python batteries
import math
import time
import logging
from functools import wraps
from contextlib import contextmanager

# This file contains the entry points to db work from the rest of the application
# Every PostStore method creates its own connection, and consumes an engine
# Every method must be decorated with with_db(slave|master)
# which will inject the relevant engine for use by the method.

# None of the methods here should interact with the database directly
# for writes; that's db_cud's job.

logger = logging.getLogger("adelia.db")


@contextmanager
def connection(engine, op):
    """ spawns, and closes, a new connection
    anything sqlalchemy throws at us comes back out as a PersistenceError
    """
    try:
        with engine.connect() as conn:
            yield conn
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error("%s failed: %s", op, e)
        raise err.PersistenceError('%s failed' % (op,)) from e


def with_db(target):
    """ Simple decorator to inject target db as the engine
    target is 'master' for writes and reads right after them, 'slave' for pure reads
    """
    def wrap(fn):
        @wraps(fn)
        def wrapped(self, *args, **kwargs):
            engine = self.db.engine if target == 'master' else self.db.slave
            return fn(self, *args, engine=engine, **kwargs)
        return wrapped
    return wrap


def _row(row):
    return dict(row) if row is not None else None


class PostStore():
    """ owns the posts table; every read and write of posts goes through here """

    def __init__(self, db=None):
        self.db = db or DB(cfg.master, cfg.slave, cfg.debug)
        self.posts = self.db.posts

    @with_db('master')
    def create_post(self, parent, client_id, title, message, file=None, thumb=None, now=None, engine=None):
        """ Submits a new post, without value checking.
            Args:
                parent (int): 0 for a thread, else the thread id
                client_id (str): poster's identifier
                title (Optional[str]): thread title
                message (str): body text
                file (Optional[str]): stored filename
                thumb (Optional[str]): stored thumbnail filename
                now (Optional[int]): epoch seconds; defaults to the current time
            Returns:
                int: post_id
        """
        now = int(time.time()) if now is None else now
        with connection(engine, 'create_post') as conn:
            return db_cud.create_post(conn, self.posts, parent, client_id,
                                      title, message, file, thumb, now)

    @with_db('master')
    def bump_thread(self, thread_id, now, engine=None):
        with connection(engine, 'bump_thread') as conn:
            db_cud.bump_thread(conn, self.posts, thread_id, now)

    @with_db('slave')
    def get_thread_page(self, page, per_page, engine=None):
        """ Generates a board index page
        Threads ordered by the latest bump, newest first.
            Args:
                page (int): 1-based page number, already clamped by the caller
                per_page (int): threads per page
            Returns:
                list: [(thread, reply_count), ...]; thread is a dict
        """
        posts = self.posts
        replies = posts.alias('replies')
        reply_count = select(func.count(replies.c.id)).\
                        where(replies.c.parent == posts.c.id).\
                        scalar_subquery().label('reply_count')
        q = select(posts, reply_count).\
                where(posts.c.parent == 0).\
                order_by(desc(posts.c.bumped), desc(posts.c.id)).\
                limit(per_page).\
                offset((page - 1) * per_page)
        with connection(engine, 'get_thread_page') as conn:
            rows = conn.execute(q).mappings().all()
        page_data = list()
        for r in rows:
            thread = dict(r) # so the count can be split back out
            count = thread.pop('reply_count')
            page_data.append((thread, count))
        return page_data

    @with_db('slave')
    def get_thread_count(self, engine=None):
        q = select(func.count(self.posts.c.id)).where(self.posts.c.parent == 0)
        with connection(engine, 'get_thread_count') as conn:
            return conn.execute(q).scalar_one()

    def count_pages(self, per_page):
        return page_window(1, per_page, self.get_thread_count())['total_pages']

    @with_db('slave')
    def get_thread(self, thread_id, engine=None):
        """ the op of a thread, or None if thread_id isn't a thread """
        q = select(self.posts).where(self.posts.c.id == thread_id,
                                     self.posts.c.parent == 0)
        with connection(engine, 'get_thread') as conn:
            return _row(conn.execute(q).mappings().first())

    @with_db('slave')
    def get_replies(self, thread_id, engine=None):
        """ all replies to a thread, oldest first """
        q = select(self.posts).\
                where(self.posts.c.parent == thread_id).\
                order_by(asc(self.posts.c.timestamp), asc(self.posts.c.id))
        with connection(engine, 'get_replies') as conn:
            return [dict(r) for r in conn.execute(q).mappings()]

    @with_db('slave')
    def get_latest_replies(self, thread_id, limit, engine=None):
        """ the last `limit` replies of a thread, still oldest first """
        q = select(self.posts).\
                where(self.posts.c.parent == thread_id).\
                order_by(desc(self.posts.c.timestamp), desc(self.posts.c.id)).\
                limit(limit)
        with connection(engine, 'get_latest_replies') as conn:
            rows = [dict(r) for r in conn.execute(q).mappings()]
        rows.reverse()
        return rows

    @with_db('slave')
    def get_reply_count(self, thread_id, engine=None):
        q = select(func.count(self.posts.c.id)).where(self.posts.c.parent == thread_id)
        with connection(engine, 'get_reply_count') as conn:
            return conn.execute(q).scalar_one()

    # the rate limiter decides on this right before a write, so read from master
    @with_db('master')
    def get_last_post_time(self, client_id, engine=None):
        q = select(func.max(self.posts.c.timestamp)).where(self.posts.c.client_id == client_id)
        with connection(engine, 'get_last_post_time') as conn:
            return conn.execute(q).scalar()


def page_window(current_page, per_page, total_items):
    """ Works out which slice of the board a page shows
    A board with no threads has no pages at all.
    Pages past the end are not an error, they're just empty.
        Args:
            current_page (int): 1-based, clamped to >= 1 by the caller
            per_page (int): threads per page
            total_items (int): threads on the board
        Returns:
            dict: {offset, limit, total_pages}
    """
    return {
        'offset': (current_page - 1) * per_page,
        'limit': per_page,
        'total_pages': int(math.ceil(total_items / per_page))}
