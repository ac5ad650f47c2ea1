"""
parser.py — Command-line grammar for mobkit.

    mobkit init [--skip-dev-tools] [--reinstall-deps] [--open]
    mobkit new <name> [--domain D] [--template-pack P]
    mobkit update                         → re-render packs, keep user files
    mobkit config                         → print the resolved config
    mobkit doctor                         → check the host toolchain
    mobkit list                           → all connected devices
    mobkit android open|check|build|run|st|list|apk|aab [targets...]
    mobkit apple open|check|build|archive|run|list|pod|xcode-script
"""

import argparse
from dataclasses import dataclass, field
from typing import Optional, Sequence

from mobkit import NAME, __version__
from mobkit.targets import ANDROID_TARGETS, APPLE_TARGETS


@dataclass
class Command:
    name: str
    sub: Optional[str] = None
    noise: int = 0
    non_interactive: bool = False
    targets: list[str] = field(default_factory=list)
    features: Optional[str] = None
    release: bool = False
    app_bundle: bool = False
    filter: Optional[str] = None
    build_number: Optional[int] = None
    args: list[str] = field(default_factory=list)
    app_name: Optional[str] = None
    domain: Optional[str] = None
    template_pack: Optional[str] = None
    skip_dev_tools: bool = False
    reinstall_deps: bool = False
    open: bool = False
    sdk_root: Optional[str] = None
    platform_name: Optional[str] = None


def _add_init_flags(p: argparse.ArgumentParser):
    p.add_argument("--skip-dev-tools", action="store_true", help="don't install optional developer tools")
    p.add_argument("--reinstall-deps", action="store_true", help="reinstall dependencies even if present")
    p.add_argument("--open", action="store_true", help="open the generated projects when done")


def _add_build_flags(p: argparse.ArgumentParser, *, profile: bool = True):
    p.add_argument("--features", help="comma or space separated cargo features")
    if profile:
        p.add_argument("--release", action="store_true", help="build with the release profile")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=NAME, description="Rust on mobile made easy")
    parser.add_argument("--version", action="version", version=f"{NAME} {__version__}")
    parser.add_argument("-v", "--verbose", action="count", default=0, dest="noise",
                        help="more output (-vv for even more)")
    parser.add_argument("--non-interactive", action="store_true",
                        help="never prompt; use detected defaults")
    commands = parser.add_subparsers(dest="name", required=True, metavar="<command>")

    p = commands.add_parser("init", help="create or regenerate the projects for this app")
    _add_init_flags(p)

    p = commands.add_parser("new", help="create a new app directory and initialize it")
    p.add_argument("app_name", metavar="name")
    p.add_argument("--domain", help="domain the app identifier is derived from")
    p.add_argument("--template-pack", help="template pack to generate the app from")
    _add_init_flags(p)

    commands.add_parser("update", help="re-render template packs, keeping files you already have")
    commands.add_parser("config", help="print the resolved config")
    commands.add_parser("doctor", help="check the host toolchain")
    commands.add_parser("list", help="list connected devices")

    # ── Android ──────────────────────────────────────────────────────────
    android = commands.add_parser("android", help="Android commands")
    android_sub = android.add_subparsers(dest="sub", required=True, metavar="<subcommand>")
    android_sub.add_parser("open", help="open the project in Android Studio")
    for sub, help_text in (("check", "check that code compiles for target(s)"),
                           ("build", "build the app for target(s)"),
                           ("apk", "build APKs for target(s)"),
                           ("aab", "build AABs for target(s)")):
        p = android_sub.add_parser(sub, help=help_text)
        p.add_argument("targets", nargs="*", metavar="target", help=f"one of {', '.join(ANDROID_TARGETS)}")
        _add_build_flags(p, profile=sub != "check")
    p = android_sub.add_parser("run", help="deploy the app to a connected device")
    _add_build_flags(p)
    p.add_argument("--app-bundle", action="store_true", help="install through an app bundle")
    p.add_argument("--filter", help="logcat filter level (error, warn, info, debug, verbose)")
    android_sub.add_parser("st", help="print a symbolicated stack trace from the device")
    android_sub.add_parser("list", help="list connected Android devices")

    # ── Apple ────────────────────────────────────────────────────────────
    apple = commands.add_parser("apple", help="Apple commands")
    apple_sub = apple.add_subparsers(dest="sub", required=True, metavar="<subcommand>")
    apple_sub.add_parser("open", help="open the project in Xcode")
    for sub, help_text in (("check", "check that code compiles for target(s)"),
                           ("build", "build the app for target(s)"),
                           ("archive", "build and archive for target(s)")):
        p = apple_sub.add_parser(sub, help=help_text)
        p.add_argument("targets", nargs="*", metavar="target", help=f"one of {', '.join(APPLE_TARGETS)}")
        _add_build_flags(p, profile=sub != "check")
        if sub == "archive":
            p.add_argument("--build-number", type=int, help="appended to the bundle version")
    p = apple_sub.add_parser("run", help="deploy the app to a connected device")
    _add_build_flags(p)
    apple_sub.add_parser("list", help="list connected iOS devices")
    p = apple_sub.add_parser("pod", help="run `pod <args>` in the Xcode project")
    p.add_argument("args", nargs=argparse.REMAINDER)
    p = apple_sub.add_parser("xcode-script", help="compile the lib (called from an Xcode build phase)")
    p.add_argument("args", nargs="+", metavar="ARCHS")
    p.add_argument("--sdk-root", required=True, help="value of SDKROOT")
    p.add_argument("--platform", dest="platform_name", required=True, help="value of PLATFORM_NAME")
    p.add_argument("--configuration", required=True, help="value of CONFIGURATION")
    p.add_argument("--features")
    return parser


def parse(argv: Optional[Sequence[str]] = None) -> Command:
    ns = vars(build_parser().parse_args(argv))
    configuration = ns.pop("configuration", None)
    if configuration is not None:
        ns["release"] = configuration.lower() == "release"
    if ns.get("sub") == "pod" and not ns.get("args"):
        build_parser().error("`apple pod` needs at least one argument")
    return Command(**ns)
