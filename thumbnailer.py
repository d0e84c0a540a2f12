""" Thumbnail resizing. No disk access in here; gen_helpers does the saving. """
import io

from PIL import Image

import errors as err

# formats that can carry transparency, and so get an alpha canvas
ALPHA_FORMATS = ('PNG', 'GIF')
ALPHA_MODES = ('RGBA', 'LA', 'PA', 'RGBa', 'La')


def has_alpha(img):
    return (img.format in ALPHA_FORMATS
            or img.mode in ALPHA_MODES
            or 'transparency' in img.info)


def target_size(width, height, max_width, max_height, upscale=True):
    """ Fits (width, height) into the box, keeping the aspect ratio
    Small images are scaled up to the box too, unless upscale is off.
        Returns:
            tuple: (width, height), neither below 1
    """
    ratio = min(max_width / width, max_height / height)
    if not upscale:
        ratio = min(ratio, 1)
    return max(1, int(width * ratio)), max(1, int(height * ratio))


def resize(img, max_width, max_height, upscale=True):
    """ Scales a decoded image down (or up) to fit a bounding box.
    Images that may be transparent are resampled in RGBA onto a fully
    transparent canvas, pasted without blending, so the alpha channel
    comes through untouched.
        Args:
            img (Image): a loaded PIL image
            max_width (int): box width
            max_height (int): box height
            upscale (Optional[bool]): allow ratios above 1
        Returns:
            Image: a new image; img is left alone
    """
    width, height = img.size
    if width < 1 or height < 1:
        raise err.ResampleFailure('Image has no pixels')
    size = target_size(width, height, max_width, max_height, upscale)

    if has_alpha(img):
        source = img.convert('RGBA')
        canvas = Image.new('RGBA', size, (0, 0, 0, 0))
    else:
        source = img if img.mode in ('RGB', 'L') else img.convert('RGB')
        canvas = Image.new(source.mode, size)

    try:
        canvas.paste(source.resize(size, Image.Resampling.BILINEAR), (0, 0))
    except (ValueError, OSError, MemoryError) as e:
        raise err.ResampleFailure('Could not resize image') from e
    return canvas


def encode(img, fmt, quality=85):
    """ serializes a thumbnail in the source's format """
    buf = io.BytesIO()
    if fmt == 'JPEG':
        img.save(buf, format='JPEG', quality=quality)
    else:
        img.save(buf, format=fmt)
    return buf.getvalue()
