# this will be imported into all other modules
# and ofc, its python, so you use whatever logic you want
# but all modules will be assuming you haven't removed any
# variable from existence.

# They will also assume values are reasonable. ie, not -1
# for threads_per_page.
import os


class Config():
    debug = False
    # Master/Slave URIs, if replicating the DB.
    # Master should handle writes, and any reads immediately following a write
    # Only pure reads should use the slave.
    master = os.getenv("ADELIA_DB", "sqlite:///adelia.sqlite")
    slave  = os.getenv("ADELIA_DB_SLAVE") # if None, slave == master aka there is only one db.

    # board configs
    board_desc       = "Adelia Imageboard"
    threads_per_page = 10   # n threads per index page
    replies_preview  = 3    # latest n replies for thread; displayed on index pages
    max_lines        = 15   # index pages cut thread bodies after n lines
    title_max_length = 75
    post_max_length  = 8000
    post_cooldown    = 15   # seconds; a client must wait strictly longer than this between posts

    # upload settings
    max_file_size = 2048 * 1024 # 2 MiB
    allowed_mime  = {'image/jpeg': 'jpg', 'image/png': 'png', 'image/gif': 'gif'}
    upload_dir    = os.getenv("ADELIA_UPLOAD_DIR", "uploads")
    thumb_dir     = os.getenv("ADELIA_THUMB_DIR", "thumbs")
    thumb_prefix  = "thumb_"

    # thumbnail settings
    thumb_max_width  = 250
    thumb_max_height = 250
    thumb_upscale    = True # small images get enlarged up to the box
    jpeg_quality     = 85

    secret_key = os.getenv("ADELIA_SECRET_KEY")  # None => random per process
    log_level  = os.getenv("ADELIA_LOG_LEVEL", "INFO")

    def __init__(self, **overrides):
        for k, v in overrides.items():
            if not hasattr(Config, k):
                raise AttributeError("unknown setting: %s" % k)
            setattr(self, k, v)


cfg = Config() # shared default; build your own Config(...) for anything else
