import base64
import hashlib
import re
from io import BytesIO

import numpy as np
import streamlit as st
from PIL import Image

from app_config.constants import UIConfig

DATA_URL_PREFIX = re.compile(r"^data:image/[\w.+-]+;base64,")


def strip_data_url_prefix(value):
    """Remove a leading ``data:image/<type>;base64,`` header, if any."""
    return DATA_URL_PREFIX.sub("", value, count=1)


def decode_base64_image(value):
    """Raw bytes from a data URL or bare base64 string."""
    return base64.b64decode(strip_data_url_prefix(value), validate=False)


def array_to_png_bytes(array):
    """Encode an RGB or RGBA uint8 array as PNG."""
    buf = BytesIO()
    Image.fromarray(np.ascontiguousarray(array)).save(buf, format="PNG")
    return buf.getvalue()


def png_data_url(png_bytes):
    return f"data:image/png;base64,{base64.b64encode(png_bytes).decode()}"


@st.cache_data(show_spinner=False, max_entries=UIConfig.IMAGE_ENCODING_CACHE_SIZE)
def _cached_image_to_url(_image, width, content_key):
    """Internal cached encoder keyed by ``content_key`` instead of the heavy image data."""
    if isinstance(_image, np.ndarray):
        img = Image.fromarray(_image)
    else:
        img = _image

    if img.mode != "RGB":
        img = img.convert("RGB")

    # Display copy only: the mask is always painted at full resolution
    if width is not None and width > 0 and width != img.size[0]:
        w_percent = (width / float(img.size[0]))
        h_size = int(round(float(img.size[1]) * float(w_percent)))
        img = img.resize((width, h_size), Image.BILINEAR)

    buf = BytesIO()
    img.save(buf, format="JPEG", quality=UIConfig.BACKGROUND_IMAGE_QUALITY)
    return f"data:image/jpeg;base64,{base64.b64encode(buf.getvalue()).decode()}"


def image_digest(image):
    """Content hash of an array or PIL image, shape and mode included."""
    if isinstance(image, np.ndarray):
        arr = np.ascontiguousarray(image)
        header = f"{arr.shape}{arr.dtype}"
        data = arr.tobytes()
    else:
        header = f"{image.size}{image.mode}"
        data = image.tobytes()
    return hashlib.sha256(header.encode() + data).hexdigest()


def image_to_url_patch(image, width=0, image_id=""):
    """
    Data URL for the canvas background.

    The cache is shared by every session in the process, so the key is the
    image content; ``image_id`` only namespaces it.
    """
    return _cached_image_to_url(image, width, f"{image_id}:{image_digest(image)}")


def png_is_blank(png_bytes):
    """True when an image has no painted (non-transparent / non-black) pixel."""
    try:
        with Image.open(BytesIO(png_bytes)) as img:
            if "A" in img.getbands():
                return img.getchannel("A").getbbox() is None
            return img.convert("L").getbbox() is None
    except (OSError, ValueError):
        return True
