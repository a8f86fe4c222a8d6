# goostframes

Pure-Python tools for reading animated GIFs into frame sequences. It also writes those frames to simple binary resource files and reads them back.

## Modules

- `goostframes.image_frames` holds the frame container and its data types.
  - `ImageFrames` is an ordered list of `Frame` objects. Each `Frame` pairs an `Image` with a delay in seconds.
  - An `Image` is 8-bit RGBA, stored row by row.
  - `ImageFrames` supports `len()`, indexing and iteration.
  - It has `add_frame`, `remove_frame` and `clear`.
  - `bounding_rect()` returns a `Rect` at the origin that covers every frame.
  - `load(path, max_frames=0)` reads a `.gif` file. Any other extension raises `UnrecognizedFormatError`.
  - `load_gif_from_buffer(data, max_frames=0)` decodes GIF bytes.
- `goostframes.gif` decodes GIFs.
  - `GifLoader` provides `load_from_file` and `load_from_buffer`.
  - `load_gif(frames, source, max_frames=0)` accepts a path or bytes.
  - Every frame is composited onto the logical screen, so each resulting `Image` has the full screen size.
  - Decoding supports global and local color tables, interlacing, transparency, and the "restore to background" and "restore to previous" disposal modes.
  - A delay of zero becomes `DEFAULT_DELAY` (0.05 s).
  - `max_frames` greater than zero stops decoding after that many frames.
- `goostframes.loaders` holds the format loaders and the resource loaders.
  - `ImageFramesLoader` is an ordered registry of `ImageFramesFormatLoader` objects. It picks a loader by file extension, case-insensitively.
  - `GifFramesLoader` is the GIF format loader. `create_default_loader()` returns a registry with it already registered.
  - The resource loaders read the files written by the importers:
    - `ImageFramesResourceLoader` reads `.imageframes` files. These hold the header `GDIMF`, a length-prefixed format extension, then the image data.
    - `AnimatedTextureResourceLoader` reads `.atex` files into an `AnimatedTexture`.
    - `SpriteFramesResourceLoader` reads `.sframes` files into a `SpriteFrames`.
- `goostframes.importers` turns an animated image into a resource file.
  - `AnimatedTextureImporter` writes `.atex` files with a delay for every frame. It keeps at most 256 frames.
  - `SpriteFramesImporter` writes `.sframes` files. It keeps at most 4096 frames, with a speed of one over the average delay.
  - `texture_flags(options)` computes `TextureFlags` from the `flags/repeat`, `flags/filter`, `flags/mipmaps`, `flags/anisotropic` and `flags/srgb` options.
  - `import_options()` lists the available `ImportOption`s, including `max_frames`.

All integers in the resource files are little-endian 32-bit. Delays and speeds are 32-bit floats.

## Installation

```
pip install goostframes
```

The package has no runtime dependencies.

## Examples

Decode a GIF and inspect its frames:

```python
from goostframes.image_frames import ImageFrames

frames = ImageFrames()
frames.load("animation.gif")
print(len(frames), frames.bounding_rect())
for frame in frames:
    print(frame.image.width, frame.image.height, frame.delay)
```

Import a GIF as an animated texture and read it back. `import_file` returns the path it wrote:

```python
from goostframes.importers import AnimatedTextureImporter
from goostframes.loaders import AnimatedTextureResourceLoader

written = AnimatedTextureImporter().import_file(
    "animation.gif", "animation", {"max_frames": 0, "flags/filter": True}
)
texture = AnimatedTextureResourceLoader().load(written)  # "animation.atex"
print(texture.flags, len(texture.frames))
```

## Errors

Failures raise exceptions:

- `FramesError` is the base class for errors in loading frames.
- `UnrecognizedFormatError` is raised for unknown formats or file headers.
- `CorruptDataError` (also a `ValueError`) is raised for invalid or truncated data.
- `GifError`, a `CorruptDataError`, is raised for GIF decoding problems.
- Bad frame indices raise `IndexError`.
- Files that cannot be opened raise the usual `OSError`.

## What it does not do

- It only decodes GIFs. It cannot encode or save them.
- It has no command-line tool.
- There is no rendering or playback. The resource types hold frame data only.

## Running the tests

```
pip install goostframes[test]
pytest
```