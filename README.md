# camproc

Building blocks for processing camera frames after capture.

## Modules

- `camproc.pwl`: piecewise linear functions (`Pwl`, `Point`, `Interval`,
  `PerpType`). A `Pwl` can be evaluated (`eval`, `eval_with_span`), inverted
  (`invert`), composed with another (`compose`), combined with another
  (`combine`, `map2`), extended to a domain (`match_domain`), scaled (`*=`) and
  turned into a lookup table (`generate_lut`).
- `camproc.stage`: the `PostProcessingStage` abstract base class and
  `StreamInfo`, plus helpers:
  - `yuv420_to_rgb`: planar YUV420 to packed RGB, cropping from the centre
    when the source is larger than the destination;
  - `execution_time`: how long a call took, in microseconds;
  - `get_json_array`: a list read from a parameter mapping, padded out with
    the tail of a default;
  - a stage registry: `register_stage` and `get_post_processing_stages`.
- `camproc.detection`: `Detection` results and `ObjectDetectUdpStage`, which
  sends each detection found under `"object_detect.results"` in a request's
  `post_process_metadata` as one UDP datagram. `encode_detection` builds the
  datagram: a little-endian start delimiter `0xDDCCBBAA`, the box as four
  32-bit integers, a name length byte of 255, the name padded to 255 bytes and
  the confidence as a 32-bit float. The stage reads `ip` (default
  `127.0.0.1`) and `port` (default `12347`) from its parameters and can be used
  as a context manager, closing its socket on exit.
- `camproc.sobel`: `sobel_filter` blurs a greyscale image and returns the mean
  of its absolute x and y gradients; `SobelCvStage` replaces the luma of a
  YUV420 main stream with those edges and sets the chroma to grey. Its
  `ksize` parameter defaults to 3.
- `camproc.resample`: `yuv420_to_rgb_scaled` resamples a YUV420 frame to an
  RGB image of any even size by nearest neighbour, and `colour_coefficients`
  picks the conversion matrix for `"sycc"`, `"smpte170m"` or `"rec709"`.

Stages are registered under the names `object_detect_udp` and `sobel_cv` when
their modules are imported. A stage talks to its application through
`app.get_main_stream()` and `app.get_stream_info(stream)`; requests carry
`buffers` and `post_process_metadata` mappings.

## Install

```
pip install camproc
```

## Example

```python
from camproc.pwl import Pwl, Point

gamma = Pwl([Point(0, 0), Point(128, 200), Point(255, 255)])
print(gamma.eval(64))       # 100.0
lut = gamma.generate_lut()  # 256 entries, one per input level
```

```python
import numpy as np
from camproc.stage import StreamInfo, yuv420_to_rgb

src_info = StreamInfo(width=640, height=480, stride=640)
dst_info = StreamInfo(width=320, height=240, stride=960)
frame = np.zeros(640 * 480 * 3 // 2, dtype=np.uint8)
rgb = yuv420_to_rgb(frame, src_info, dst_info)
```

## What it does not do

The package does not capture frames or drive a camera: stages are handed
their application and requests by the caller. It has no stages that run
neural network models (classification, detection, pose estimation or
segmentation), no drawing of results onto frames beyond the edge filter, and
no preview windows; `yuv420_to_rgb_scaled` only produces the RGB image a
window would show.

## Tests

```
pip install camproc[test]
pytest
```