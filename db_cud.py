import sqlalchemy
from sqlalchemy import update
import logging
from contextlib import contextmanager

# this file handles all CUD operations
# every function here consumes a connection
# and operates using transactions (regardless of complexity and strict-dependencies of sql interaction)
#  life is just easier with a consistent assumption, and I'm
#  assuming there won't be any real overhead penalities.

# NOTE: NO FUNCTION IN THIS FILE WILL CLOSE THE CONNECTION

logger = logging.getLogger("adelia.db")


@contextmanager
def transaction(conn):
    trans = conn.begin()
    try:
        yield
    except sqlalchemy.exc.SQLAlchemyError:
        trans.rollback()
        raise
    else:
        trans.commit()


def create_post(conn, posts, parent, client_id, title, message, file, thumb, now):
    """ Inserts a post, without value validation.
    timestamp and bumped both start out as `now`.
        Args:
            posts (Table): the posts table
            parent (int): 0 for a new thread, otherwise the thread being replied to
            client_id (str): whoever is posting; only used for throttling
            title (Optional[str]): thread title; None for replies
            message (str): trimmed body text
            file (Optional[str]): stored filename of the upload
            thumb (Optional[str]): stored filename of its thumbnail
            now (int): epoch seconds
        Returns:
            int: post id
    """
    postdata = {
        'parent': parent,
        'timestamp': now,
        'bumped': now,
        'client_id': client_id,
        'title': title,
        'message': message,
        'file': file,
        'thumb': thumb}
    with transaction(conn):
        post_id = conn.execute(posts.insert().values(**postdata)).inserted_primary_key[0]
    return post_id


def bump_thread(conn, posts, thread_id, now):
    """ moves the thread to the top of the board
        Returns:
            int: rows touched; 0 when the thread is gone
    """
    q = update(posts).\
            where(posts.c.id == thread_id).\
            values(bumped = now)
    with transaction(conn):
        touched = conn.execute(q).rowcount
    if not touched:
        logger.warning("bump of thread %s matched no rows", thread_id)
    return touched
