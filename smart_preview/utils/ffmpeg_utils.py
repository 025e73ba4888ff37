"""
This module provides utility functions related to FFmpeg.

It locates the executables, runs one-shot queries (`ffmpeg -encoders`) and
builds the command lines used by the FFmpeg-backed runtime. Command lines are
assembled with ffmpeg-python so that argument ordering and quoting follow one
convention everywhere.
"""

import os
import re
import shlex
import shutil
import subprocess
from typing import List, Optional, Set, Union

import ffmpeg
from loguru import logger

from ..config.common import MODULE_PATH


def ffmpeg_executable(name: str = "ffmpeg") -> str:
    """
    Resolves an FFmpeg executable ('ffmpeg' or 'ffprobe').

    The directory configured as `paths.ffmpeg_dir` in `config.user.yaml` wins;
    otherwise the system PATH is searched. When neither has it the bare name is
    returned and the eventual process start reports the failure.
    """
    if MODULE_PATH:
        for candidate in (MODULE_PATH / name, MODULE_PATH / f"{name}.exe"):
            if candidate.is_file():
                return str(candidate)
        logger.warning(f"'{name}' not found in configured ffmpeg_dir '{MODULE_PATH}', falling back to PATH.")
    return shutil.which(name) or name


def display_cmd(cmd_list: List[str]) -> str:
    """Formats a command list for logs, quoted for the current platform."""
    if os.name == "nt":
        return subprocess.list2cmdline(cmd_list)
    return shlex.join(cmd_list)


def run_cmd(cmd_parts: Union[str, List[str]], show_cmd: bool = False) -> Optional[subprocess.CompletedProcess]:
    """
    Executes an external command and captures its output.

    Args:
        cmd_parts: The command as a list of arguments (preferred) or a single string,
                   which is split with shlex.
        show_cmd: If True, the command is logged at DEBUG level before execution.

    Returns:
        A `subprocess.CompletedProcess` on completion, whatever its return code.
        `None` if the command could not be started at all.
    """
    if isinstance(cmd_parts, str):
        try:
            cmd_list = shlex.split(cmd_parts)
        except ValueError as e:
            logger.error(f"Error splitting command string with shlex: '{cmd_parts}'. Error: {e}")
            return None
    else:
        cmd_list = list(cmd_parts)

    if not cmd_list:
        logger.error("run_cmd received an empty command list.")
        return None

    if show_cmd:
        logger.debug(f"Executing command: {display_cmd(cmd_list)}")

    try:
        result = subprocess.run(
            cmd_list,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            shell=False,
        )
    except FileNotFoundError:
        logger.error(
            f"Error: Command not found ('{cmd_list[0]}'). Ensure it's in your system's PATH or configured correctly."
        )
        return None
    except OSError as e:
        logger.error(f"Could not start command {display_cmd(cmd_list)}: {e}")
        return None

    if result.stderr and result.returncode != 0:
        logger.debug(f"Command stderr (error, rc={result.returncode}): {result.stderr}")
    elif result.stderr:
        logger.trace(f"Command stderr (non-error, rc={result.returncode}): {result.stderr}")
    return result


def parse_encoder_names(encoders_output: str) -> Set[str]:
    """
    Extracts encoder names from `ffmpeg -encoders` output.

    Encoder rows look like ' A....D libopus              libopus Opus'; the
    legend rows above the '------' separator are skipped.
    """
    names: Set[str] = set()
    in_table = False
    for line in encoders_output.splitlines():
        if line.strip().startswith("------"):
            in_table = True
            continue
        if not in_table:
            continue
        match = re.match(r"^\s*[VAS][A-Z.]{5}\s+(\S+)", line)
        if match:
            names.add(match.group(1))
    return names


def list_encoders() -> Set[str]:
    """Returns the set of encoder names the local FFmpeg build provides."""
    res = run_cmd([ffmpeg_executable(), "-hide_banner", "-encoders"], show_cmd=__debug__)
    if not res or res.returncode != 0:
        logger.warning("Could not list FFmpeg encoders; assuming none are available.")
        return set()
    return parse_encoder_names(res.stdout)


def packet_end_time(packets: List[dict]) -> float:
    """
    The end time, in seconds, of the last packet of an ffprobe packet listing.

    Containers written without seeking (e.g. webm produced on a pipe) carry no
    Duration element, so the packet timestamps are the only duration source.
    Returns 0.0 when no packet has a timestamp.
    """
    end = 0.0
    for packet in packets:
        pts_time = packet.get("pts_time")
        if pts_time in (None, "N/A"):
            continue
        packet_duration = packet.get("duration_time")
        try:
            packet_end = float(pts_time) + (float(packet_duration) if packet_duration not in (None, "N/A") else 0.0)
        except (TypeError, ValueError):
            continue
        end = max(end, packet_end)
    return end


def build_decode_cmd(input_path: str, has_video: bool, has_audio: bool = True) -> List[str]:
    """
    Command for real-time playback of `input_path` into NUT on stdout.

    `-re` paces reading at the native frame rate, which is what makes the
    capture behave like playback rather than a batch transcode.
    """
    output_kwargs = {"format": "nut"}
    if has_audio:
        output_kwargs["acodec"] = "pcm_s16le"
    else:
        output_kwargs["an"] = None
    if has_video:
        output_kwargs["vcodec"] = "rawvideo"
        output_kwargs["pix_fmt"] = "yuv420p"
    else:
        output_kwargs["vn"] = None
    stream = (
        ffmpeg.input(input_path, re=None)
        .output("pipe:", **output_kwargs)
        .global_args("-hide_banner", "-loglevel", "error", "-nostdin")
    )
    return stream.compile(cmd=ffmpeg_executable())


def build_record_cmd(
    audio_encoder: str,
    video_encoder: Optional[str],
    audio_bits_per_second: int,
    video_bits_per_second: Optional[int],
    output_path: str = "pipe:",
) -> List[str]:
    """
    Command that encodes NUT from stdin into webm at `output_path`.

    The runtime records into a regular file: the webm muxer only writes the
    Duration element and the cues when its output is seekable.
    """
    output_kwargs = {
        "format": "webm",
        "acodec": audio_encoder,
        "audio_bitrate": audio_bits_per_second,
    }
    if video_encoder:
        output_kwargs["vcodec"] = video_encoder
        if video_bits_per_second:
            output_kwargs["video_bitrate"] = video_bits_per_second
    else:
        output_kwargs["vn"] = None
    stream = (
        ffmpeg.input("pipe:", format="nut")
        .output(output_path, **output_kwargs)
        .global_args("-hide_banner", "-loglevel", "error")
    )
    return stream.compile(cmd=ffmpeg_executable(), overwrite_output=True)
