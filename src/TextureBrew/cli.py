"""Command-line interface for texture synthesis."""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List

from tqdm import tqdm

from .config import NormalConvention, PipelineConfig, Resolution
from .core import load_source_image, setup_logging
from .errors import EncodingFailure, InvalidParameters, SynthesisError

logger = logging.getLogger("texture_brew")

SUPPORTED_INPUT_FORMATS = (
    ".png", ".jpg", ".jpeg", ".tga", ".bmp", ".tiff", ".tif", ".webp",
)


def _collect_inputs(path: str) -> List[str]:
    if os.path.isdir(path):
        return sorted(
            str(p) for p in Path(path).iterdir()
            if p.is_file() and p.suffix.lower() in SUPPORTED_INPUT_FORMATS
        )
    return [path]


def _apply_overrides(config: PipelineConfig, args):
    p = config.params
    if args.resolution:
        p.resolution = args.resolution
    if args.normal_strength is not None:
        p.normal_strength = args.normal_strength
    if args.normal_convention:
        p.normal_convention = args.normal_convention
    if args.displacement is not None:
        p.displacement_strength = args.displacement
    if args.height_min is not None:
        p.height_min = args.height_min
    if args.height_max is not None:
        p.height_max = args.height_max
    if args.roughness is not None:
        p.roughness_offset = args.roughness
    if args.metallic is not None:
        p.metallic = args.metallic
    if args.ao_strength is not None:
        p.ao_strength = args.ao_strength
    if args.border is not None:
        top, right, bottom, left = args.border
        p.border.top, p.border.right = top, right
        p.border.bottom, p.border.left = bottom, left
    if args.border_color:
        p.border.color = args.border_color
    if args.output:
        config.output_dir = args.output
    if args.zip:
        config.archive = True
    if args.workers is not None:
        config.max_workers = args.workers
    if args.log_level:
        config.log_level = args.log_level


def main():
    """Parse CLI arguments, synthesize texture sets, and write them out."""
    parser = argparse.ArgumentParser(
        description="Generate PBR texture maps from a base color photograph",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  TextureBrew -i brick.jpg -o ./materials
  TextureBrew -i brick.jpg --name RedBrick --resolution 2048x1080 --zip
  TextureBrew -i ./photos --config material.yaml
  TextureBrew -i brick.jpg --border 8 8 8 8 --border-color "#202020"
  TextureBrew --generate-config
        """
    )
    parser.add_argument("--input", "-i", help="Source image or directory of images")
    parser.add_argument("--output", "-o", help="Output directory")
    parser.add_argument("--config", "-c", help="Path to config YAML")
    parser.add_argument("--name", "-n", help="Material name used for output files")
    parser.add_argument("--resolution",
                        help="Output size, one of: "
                             + ", ".join(r.value for r in Resolution))
    parser.add_argument("--normal-strength", type=float)
    parser.add_argument("--normal-convention",
                        choices=[c.value for c in NormalConvention])
    parser.add_argument("--displacement", type=float, help="Displacement strength")
    parser.add_argument("--height-min", type=float, help="Height clamp minimum (%%)")
    parser.add_argument("--height-max", type=float, help="Height clamp maximum (%%)")
    parser.add_argument("--roughness", type=float, help="Roughness offset")
    parser.add_argument("--metallic", type=float)
    parser.add_argument("--ao-strength", type=float)
    parser.add_argument("--border", type=int, nargs=4,
                        metavar=("TOP", "RIGHT", "BOTTOM", "LEFT"))
    parser.add_argument("--border-color", help="Albedo border color, e.g. '#808080'")
    parser.add_argument("--zip", action="store_true",
                        help="Write a single <name>_PBR.zip instead of loose files")
    parser.add_argument("--workers", type=int, help="Max parallel worker threads")
    parser.add_argument("--generate-config", action="store_true",
                        help="Generate default config.yaml")
    parser.add_argument("--log-level",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])

    args = parser.parse_args()

    if args.generate_config:
        config = PipelineConfig()
        dest = args.config or args.output or "config.yaml"
        if os.path.isdir(dest):
            dest = os.path.join(dest, "config.yaml")
        config.to_yaml(dest)
        logger.info("Generated default %s", dest)
        print(f"Generated default {dest}")
        return

    # Make validation warnings from from_yaml() visible before the
    # file-based logging is configured.
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")

    if args.config:
        if not os.path.exists(args.config):
            logger.error("Config file not found: %s", args.config)
            print(f"Error: Config file not found: {args.config}")
            sys.exit(1)
        try:
            config = PipelineConfig.from_yaml(args.config)
        except InvalidParameters as e:
            logger.error("Invalid config file '%s': %s", args.config, e)
            print(f"Error: Invalid config: {e}")
            sys.exit(1)
    else:
        config = PipelineConfig()

    _apply_overrides(config, args)

    if not args.input or not os.path.exists(args.input):
        logger.error("Input not found: %s", args.input)
        print(f"Error: Input not found: {args.input}")
        sys.exit(1)

    log_file = os.path.join(config.output_dir, "texture_brew.log")
    os.makedirs(config.output_dir, exist_ok=True)
    setup_logging(config.log_level, log_file)

    try:
        config.validate()
    except InvalidParameters as e:
        logger.error(str(e))
        print(f"Error: {e}")
        sys.exit(1)

    inputs = _collect_inputs(args.input)
    if not inputs:
        logger.error("No supported images found in %s", args.input)
        print(f"Error: No supported images found in {args.input}")
        sys.exit(1)

    from .packaging import export_texture_set, write_archive
    from .pipeline import TextureSynthesizer
    synthesizer = TextureSynthesizer(config)

    failed = 0
    try:
        for path in tqdm(inputs, desc="Synthesizing", unit="image",
                         disable=len(inputs) < 2):
            stem = Path(path).stem
            if args.name:
                name = args.name if len(inputs) == 1 else f"{args.name}_{stem}"
            else:
                name = stem
            try:
                source = load_source_image(path, max_pixels=config.max_source_pixels)
            except (IOError, ValueError) as e:
                logger.error("Skipping %s: %s", path, e)
                failed += 1
                continue

            try:
                texture_set = synthesizer.synthesize(source)
                if config.archive:
                    write_archive(texture_set, config.output_dir, name)
                else:
                    export_texture_set(texture_set, config.output_dir, name)
            except (InvalidParameters, EncodingFailure):
                raise
            except (ValueError, SynthesisError) as e:
                logger.error("Failed %s: %s", path, e)
                print(f"Error: {path}: {e}")
                failed += 1
    except KeyboardInterrupt:
        logger.warning("Interrupted by user.")
        sys.exit(130)
    except InvalidParameters as e:
        logger.error(str(e))
        print(f"Error: {e}")
        sys.exit(1)
    except EncodingFailure as e:
        logger.error("Encoding failed: %s", e)
        print(f"Error: Encoding failed: {e}")
        sys.exit(2)

    if failed:
        logger.error("%d of %d inputs failed", failed, len(inputs))
        sys.exit(1)


if __name__ == "__main__":
    main()
