#!/usr/bin/env python3
"""
Curriculum provisioning tool

Order chapters/units by prerequisite and provision units with their materials.

Usage:
    python main.py order --chapter CH01          # Units of a chapter in prerequisite order
    python main.py order --course JPD113         # Chapters of a course in prerequisite order
    python main.py check files/*.pdf             # Validate material file names locally
    python main.py check files/*.pdf --remote    # ...and check they are not taken
    python main.py provision unit.yaml           # Create a unit and upload its materials
    python main.py provision rest.yaml --resume  # Add materials to an existing unit
"""

import argparse
import sys

from curriculum.api import CourseApiClient
from curriculum.config import load_config
from curriculum.core import IdentifierValidator, ProvisioningPipeline, Stage, sort_by_prerequisite
from curriculum.exceptions import CurriculumError
from curriculum.logging_config import get_logger, log_exception, setup_logging
from curriculum.manifest import load_manifest
from curriculum.models import SelectedFile

# Initialize logging (will be configured in main())
logger = get_logger('main')


def print_progress(current: int, total: int, identifier: str, status: str):
    """Print progress to console."""
    print(f"[{current}/{total}] {identifier}: {status}")


def cmd_order(args, client: CourseApiClient) -> int:
    if args.chapter:
        entities = client.list_units_by_chapter(args.chapter)
        label = f"Units in chapter {args.chapter}"
    else:
        entities = client.list_chapters_by_course(args.course)
        label = f"Chapters in course {args.course}"

    ordered = sort_by_prerequisite(entities)
    print(f"\n=== {label} ({len(ordered)}) ===")
    for position, entity in enumerate(ordered, 1):
        prereq = f"  (after {entity.prerequisite_id})" if entity.prerequisite_id else ""
        print(f"  {position:2d}. {entity.id} - {entity.title} [{entity.status.value}]{prereq}")
    return 0


def cmd_check(args, config, client) -> int:
    validator = IdentifierValidator(
        lookup=client.get_material if client else None,
        max_file_size=config.provisioning.max_file_size_bytes,
        allowed_extensions=config.provisioning.allowed_extensions,
        allowed_content_types=config.provisioning.allowed_content_types,
    )

    pending: set[str] = set()
    failures = 0
    for path in args.files:
        try:
            selected = SelectedFile.from_path(path)
        except OSError as e:
            print(f"  ✗ {path}: {e}")
            failures += 1
            continue

        outcome = validator.validate(selected, pending)
        if outcome.ok:
            pending.add(outcome.identifier)
            note = "" if outcome.verified else " (not checked against server)"
            print(f"  ✓ {outcome.identifier}{note}")
        else:
            print(f"  ✗ {selected.name}: {outcome.error.message}")
            failures += 1

    print(f"\n{len(args.files) - failures}/{len(args.files)} files valid")
    return 1 if failures else 0


def cmd_provision(args, config, client: CourseApiClient) -> int:
    unit_draft, material_drafts = load_manifest(args.manifest)

    pipeline = ProvisioningPipeline(client, config=config.provisioning)
    if args.resume:
        result = pipeline.resume(unit_draft.id, material_drafts, on_progress=print_progress)
    else:
        result = pipeline.run(unit_draft, material_drafts, on_progress=print_progress)

    if not result.uniqueness_verified:
        print(f"\nWarning: could not confirm these identifiers are new: "
              f"{', '.join(result.unverified_identifiers)}")

    if result.success:
        print(f"\n✓ Unit {result.parent_id}: created {result.created_child_count} material(s)")
        return 0

    failure = result.failure
    print(f"\n✗ Failed at stage {failure.stage.value}: {failure.reason}")
    if failure.stage == Stage.VALIDATE:
        for error in result.validation_errors[1:]:
            print(f"  - {error.message}")
        print("Nothing was created.")
    elif failure.stage == Stage.PROVISION_CHILDREN:
        print(f"Unit {result.parent_id} was created; "
              f"{result.created_child_count} material(s) created before material "
              f"#{failure.child_index + 1} failed.")
        print("Not created:")
        for identifier in result.remaining_material_ids:
            print(f"  - {identifier}")
        print("Remove the created materials from the manifest, then re-run it "
              "with --resume to add the rest to the existing unit.")
    return 1


def main():
    parser = argparse.ArgumentParser(
        description="Order curriculum entities and provision units with materials",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python main.py order --chapter JPD113-C01
    python main.py check JPD113__CHAPTER_01__UNIT_01__KANJI__JA_VI__0001.pdf
    python main.py provision unit.yaml --api-url https://lms.example.com/api
    python main.py provision remaining.yaml --resume
        """
    )
    parser.add_argument('--config', help='Path to config.yaml')
    parser.add_argument('--api-url', help='Course-content API base URL')
    parser.add_argument('--token', help='Bearer access token')
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default from config)'
    )
    parser.add_argument('--log-file', help='Log file path')

    subparsers = parser.add_subparsers(dest='command', required=True)

    order_parser = subparsers.add_parser('order', help='List entities in prerequisite order')
    scope = order_parser.add_mutually_exclusive_group(required=True)
    scope.add_argument('--chapter', help='List the units of this chapter')
    scope.add_argument('--course', help='List the chapters of this course')

    check_parser = subparsers.add_parser('check', help='Validate material file names')
    check_parser.add_argument('files', nargs='+', help='Material files to check')
    check_parser.add_argument(
        '--remote',
        action='store_true',
        help='Also check that identifiers are not already used on the server'
    )

    provision_parser = subparsers.add_parser('provision', help='Create a unit with materials')
    provision_parser.add_argument('manifest', help='YAML manifest describing the unit')
    provision_parser.add_argument(
        '--resume',
        action='store_true',
        help='Unit already exists; only provision the listed materials'
    )

    args = parser.parse_args()

    try:
        config = load_config(args.config)
    except CurriculumError as e:
        print(f"Error: {e}")
        sys.exit(2)

    if args.api_url:
        config.api.base_url = args.api_url
    if args.token:
        config.api.access_token = args.token

    setup_logging(
        level=args.log_level or config.logging.level,
        log_file=args.log_file or config.logging.file,
        json_format=config.logging.json_format,
        max_bytes=config.logging.max_bytes,
        backup_count=config.logging.backup_count,
    )

    needs_client = args.command != 'check' or args.remote
    client = CourseApiClient.from_config(config.api) if needs_client else None

    try:
        if args.command == 'order':
            code = cmd_order(args, client)
        elif args.command == 'check':
            code = cmd_check(args, config, client)
        else:
            code = cmd_provision(args, config, client)
    except CurriculumError as e:
        log_exception(logger, e, f"{args.command} failed")
        print(f"Error: {e}")
        code = 1
    finally:
        if client:
            client.close()

    sys.exit(code)


if __name__ == "__main__":
    main()
