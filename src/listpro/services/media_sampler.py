"""Media sampling: audio track plus evenly spaced still frames."""

import asyncio
import base64
import io
import shutil
import tempfile
from pathlib import Path
from uuid import NAMESPACE_URL, uuid5

import httpx
from PIL import Image

from listpro.config import settings
from listpro.domain.models import Frame, MediaSample
from listpro.errors import MediaExtractionError
from listpro.logging import get_logger

logger = get_logger(__name__)

WORK_DIR_PREFIX = "listpro-"


def compute_frame_timestamps(duration: float, count: int) -> list[float]:
    """Evenly spaced timestamps from 0 to ``duration`` inclusive.

    A single frame is taken at 0.
    """
    if count < 1:
        raise ValueError("frame count must be at least 1")
    if count == 1:
        return [0.0]
    step = duration / (count - 1)
    return [round(step * i, 3) for i in range(count - 1)] + [float(duration)]


class MediaSampler:
    """Extracts one audio track and N still frames from a video.

    Frames are returned as base64 JPEG data URIs so any vision model can read
    them; the audio is written as MP3 into a per-run work directory.
    """

    def __init__(
        self,
        max_dimension: int | None = None,
        download_timeout: float | None = None,
    ) -> None:
        self.max_dimension = (
            settings.frame_max_dimension if max_dimension is None else max_dimension
        )
        self.download_timeout = (
            settings.video_download_timeout if download_timeout is None else download_timeout
        )

    async def sample(self, video_ref: str, frame_count: int | None = None) -> MediaSample:
        """Sample a video.

        Args:
            video_ref: Local path, ``file://`` URI or http(s) URL of the video
            frame_count: Number of frames to sample (defaults to settings)

        Returns:
            MediaSample owned by the calling run

        Raises:
            MediaExtractionError: If the video cannot be opened, has zero
                duration or carries no audio
        """
        count = frame_count if frame_count is not None else settings.frame_count
        if count < 1:
            raise MediaExtractionError(f"frame count must be at least 1, got {count}")

        logger.info("media_sampling_started", video_ref=video_ref[:100], frame_count=count)

        video_path, downloaded = await self._get_video_path(video_ref)
        work_dir = Path(tempfile.mkdtemp(prefix=WORK_DIR_PREFIX))
        audio_path = work_dir / "audio.mp3"

        try:
            loop = asyncio.get_running_loop()
            duration, timestamps, images = await loop.run_in_executor(
                None, self._read_clip, video_path, count, audio_path
            )
        except BaseException:
            shutil.rmtree(work_dir, ignore_errors=True)
            raise
        finally:
            if downloaded:
                Path(video_path).unlink(missing_ok=True)

        frames = tuple(
            Frame(index=i, timestamp=ts, image_ref=self._frame_to_data_uri(image))
            for i, (ts, image) in enumerate(zip(timestamps, images, strict=True))
        )

        logger.info(
            "media_sampling_completed",
            duration=duration,
            frame_count=len(frames),
            audio_ref=str(audio_path),
        )

        return MediaSample(
            video_id=uuid5(NAMESPACE_URL, video_ref).hex,
            audio_ref=str(audio_path),
            frames=frames,
            duration=duration,
        )

    def cleanup(self, sample: MediaSample) -> None:
        """Remove the work directory holding the sample's audio."""
        work_dir = Path(sample.audio_ref).parent
        if work_dir.name.startswith(WORK_DIR_PREFIX):
            shutil.rmtree(work_dir, ignore_errors=True)

    async def _get_video_path(self, video_ref: str) -> tuple[str, bool]:
        """Resolve the reference to a local file, downloading if necessary.

        Returns:
            Tuple of (local path, whether it is a temp download)
        """
        if video_ref.startswith("file://"):
            video_ref = video_ref[7:]

        if not video_ref.startswith(("http://", "https://")):
            if not Path(video_ref).is_file():
                raise MediaExtractionError(f"video not found: {video_ref}")
            return video_ref, False

        logger.debug("downloading_video_for_sampling", url=video_ref[:100])

        try:
            async with httpx.AsyncClient(timeout=self.download_timeout) as client:
                response = await client.get(video_ref, follow_redirects=True)
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise MediaExtractionError(f"video download failed: {e}") from e

        suffix = ".mp4"
        content_type = response.headers.get("content-type", "")
        if "webm" in content_type:
            suffix = ".webm"
        elif "quicktime" in content_type:
            suffix = ".mov"

        with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as temp_file:
            temp_file.write(response.content)
            return temp_file.name, True

    def _read_clip(
        self,
        video_path: str,
        count: int,
        audio_path: Path,
    ) -> tuple[float, list[float], list[Image.Image]]:
        """Open the clip with moviepy, write its audio and grab the frames."""
        from moviepy import VideoFileClip

        try:
            with VideoFileClip(video_path) as clip:
                duration = float(clip.duration or 0.0)
                if duration <= 0:
                    raise MediaExtractionError(f"video has zero duration: {video_path}")
                if clip.audio is None:
                    raise MediaExtractionError(f"video has no audio track: {video_path}")

                clip.audio.write_audiofile(str(audio_path), bitrate="32k", logger=None)

                timestamps = compute_frame_timestamps(duration, count)
                images = []
                for timestamp in timestamps:
                    # get_frame at exactly the clip end is out of range
                    t = max(0.0, min(timestamp, duration - 0.01))
                    images.append(Image.fromarray(clip.get_frame(t)))
        except MediaExtractionError:
            raise
        except Exception as e:
            raise MediaExtractionError(f"could not open video {video_path}: {e}") from e

        return duration, timestamps, images

    def _frame_to_data_uri(self, frame: Image.Image) -> str:
        """Convert a PIL Image to a base64 JPEG data URI."""
        if frame.width > self.max_dimension or frame.height > self.max_dimension:
            frame.thumbnail((self.max_dimension, self.max_dimension), Image.Resampling.LANCZOS)

        if frame.mode != "RGB":
            frame = frame.convert("RGB")

        buffer = io.BytesIO()
        frame.save(buffer, format="JPEG", quality=85)
        b64_data = base64.b64encode(buffer.getvalue()).decode("utf-8")
        return f"data:image/jpeg;base64,{b64_data}"
