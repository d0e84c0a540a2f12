from config import cfg
import sqlalchemy
from sqlalchemy import Table, Column, Integer, String, Text, MetaData, Index
from sqlalchemy.pool import StaticPool


class DB():
    engine   = None
    slave    = None
    metadata = None
    posts    = None

    def __init__(self, maindb=None, slavedb=None, debug=False):
        maindb = maindb or cfg.master
        self.engine   = _make_engine(maindb, debug)
        self.slave    = _make_engine(slavedb, debug) if slavedb else self.engine
        self.metadata = MetaData()
        self.define_schema()

    def reset_db(self):
        """ drop all tables, create all tables. """
        self.metadata.drop_all(self.engine)
        self.metadata.create_all(self.engine)

    def create_db(self):
        """ create the full schema, leaving existing tables alone """
        self.metadata.create_all(self.engine)

    def define_schema(self):
        # a thread is just a post with parent = 0, so there is no real foreign key
        # on parent; 0 would have to point at a row that never exists.
        self.posts = Table('posts', self.metadata,
                Column('id'        , Integer      , primary_key=True),
                Column('parent'    , Integer      , nullable=False, index=True),
                Column('timestamp' , Integer      , nullable=False), # epoch seconds
                Column('bumped'    , Integer      , nullable=False, index=True),
                Column('client_id' , String(64)   , nullable=False), # ipv6 fits, with room to spare
                Column('title'     , String(cfg.title_max_length)),
                Column('message'   , Text         , nullable=False),
                Column('file'      , String(255)), # max length of linux filenames
                Column('thumb'     , String(255)),
                Index('ix_posts_client_time', 'client_id', 'timestamp'),
                sqlite_autoincrement=True)

    def create_test_db(self):
        """ swaps in an in-memory sqlite db for testing """
        self.engine = sqlalchemy.create_engine("sqlite://",
                        connect_args={'check_same_thread': False},
                        poolclass=StaticPool)
        self.slave = self.engine
        self.metadata = MetaData()
        self.define_schema()
        self.reset_db()
        return self


def _make_engine(uri, debug):
    if uri.startswith('sqlite'):
        # flask may hand a request to any thread
        return sqlalchemy.create_engine(uri, echo=debug, connect_args={'check_same_thread': False})
    return sqlalchemy.create_engine(uri, echo=debug)
