import io
import os
import secrets
import logging

from PIL import Image, UnidentifiedImageError

from config import cfg
import errors as err
import thumbnailer

logger = logging.getLogger("adelia.ingest")

# what Pillow calls it => the mime type we check against cfg.allowed_mime
PIL_MIME = {
    'JPEG': 'image/jpeg',
    'PNG': 'image/png',
    'GIF': 'image/gif',
}

# everything that can go wrong while Pillow decodes or resizes
DECODE_ERRORS = (OSError, SyntaxError, ValueError, EOFError, Image.DecompressionBombError)


def can_post(store, client_id, now, cooldown=None):
    """ Simple throttle: one post per client per cooldown window
        Args:
            store (PostStore): where the last post time comes from
            client_id (str): poster's identifier
            now (int): epoch seconds
            cooldown (Optional[int]): seconds; defaults to cfg.post_cooldown
        Returns:
            bool: True if the client may post
    """
    cooldown = cfg.post_cooldown if cooldown is None else cooldown
    last = store.get_last_post_time(client_id)
    if last is None:
        return True
    return now - last > cooldown


def truncate_message(message, max_lines):
    """ cuts a post body down for the index pages """
    lines = message.split('\n')
    if len(lines) <= max_lines:
        return message
    return '\n'.join(lines[:max_lines]) + '\n[...]\n'


def sniff_type(data):
    """ Works out what the upload really is, from its content alone
        Returns:
            tuple: (mime type, PIL image opened lazily); mime is None for non-images
        Raises:
            DecodeFailure: the header describes a decompression bomb
    """
    try:
        img = Image.open(io.BytesIO(data))
    except UnidentifiedImageError:
        return None, None
    except Image.DecompressionBombError as e:
        # a real image, just far too many pixels to ever decode
        raise err.DecodeFailure('File is not a valid image.') from e
    return PIL_MIME.get(img.format, 'image/%s' % (img.format or '').lower()), img


def unique_name(ext):
    """ 16 random bytes; the client's filename never gets anywhere near the disk """
    return '%s.%s' % (secrets.token_hex(16), ext)


def thumb_name(filename, conf=cfg):
    return conf.thumb_prefix + filename


def delete_file(filename, thumb, conf=cfg):
    """ removes an upload and its thumbnail. Files that are already gone are fine. """
    for path in (os.path.join(conf.upload_dir, filename) if filename else None,
                 os.path.join(conf.thumb_dir, thumb) if thumb else None):
        if path is None:
            continue
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            # callers are already unwinding some other failure; don't mask it
            logger.error("could not remove %s: %s", path, e)


def _write(path, data):
    with open(path, 'xb') as f:
        f.write(data)


def save_image(data, declared_size, mime_hint=None, conf=cfg):
    """ Validates an upload, stores it, and stores a thumbnail next to it
    If anything fails after the original is written, the original is removed again.
        Args:
            data (bytes): the raw upload
            declared_size (int): size the client claims; checked before anything else
            mime_hint (Optional[str]): client-declared type. Only used for logging.
            conf (Optional[Config]): settings
        Returns:
            tuple: (filename, thumbname)
    """
    if declared_size > conf.max_file_size or len(data) > conf.max_file_size:
        raise err.FileTooLarge('File exceeds maximum allowed size of %s MB.'
                               % (conf.max_file_size // (1024 * 1024),))

    mime, img = sniff_type(data)
    if mime not in conf.allowed_mime:
        raise err.UnsupportedType('Unsupported file type.')
    if mime_hint and mime_hint != mime:
        logger.info("client said %s, content is %s", mime_hint, mime)

    filename = unique_name(conf.allowed_mime[mime])
    thumbname = thumb_name(filename, conf)
    mainpath = os.path.join(conf.upload_dir, filename)
    thumbpath = os.path.join(conf.thumb_dir, thumbname)

    try:
        _write(mainpath, data) # first save the full image, unchanged
    except OSError as e:
        logger.error("could not store upload %s: %s", filename, e)
        raise err.StorageFailure('Failed to store upload') from e

    try:
        thumb = _make_thumbnail(img, conf)
    except err.DecodeFailure:
        logger.warning("upload %s did not decode; removing it", filename)
        delete_file(filename, None, conf)
        raise

    try:
        _write(thumbpath, thumb)
    except OSError as e:
        logger.error("could not store thumbnail %s: %s", thumbname, e)
        # a half-written thumb is as useless as none
        delete_file(filename, thumbname, conf)
        raise err.StorageFailure('Failed to store thumbnail') from e

    return filename, thumbname


def _make_thumbnail(img, conf):
    fmt = img.format
    try:
        img.load()
    except DECODE_ERRORS as e:
        raise err.DecodeFailure('File is not a valid image.') from e
    small = thumbnailer.resize(img, conf.thumb_max_width, conf.thumb_max_height,
                               upscale=conf.thumb_upscale)
    try:
        return thumbnailer.encode(small, fmt, conf.jpeg_quality)
    except DECODE_ERRORS as e:
        raise err.DecodeFailure('Failed to create thumbnail.') from e
