"""
commands/create.py — Scaffold or regenerate a mobile app project.

  init    → load mobile.toml (or generate it), then render every project
  new     → make `<name>/`, write its mobile.toml, then init it
  update  → re-render every project, keeping files that already exist
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from mobkit import android_project, apple_project, bundletool, platforms, project, templating
from mobkit.app_config import check_name
from mobkit.domain import check_domain_syntax
from mobkit.dot_cargo import DotCargo
from mobkit.env import AndroidEnv
from mobkit.metadata import Metadata
from mobkit.parser import Command
from mobkit.project_config import Config, Origin, detect_raw, write_raw
from mobkit.report import ActionRequest, MobkitError

logger = logging.getLogger(__name__)


class NewProjectError(MobkitError):
    pass


async def _gen_android(config: Config, metadata: Metadata, dot_cargo: DotCargo, cmd: Command,
                       filter: templating.Filter) -> bool:
    try:
        env = AndroidEnv.from_environ()
    except MobkitError as err:
        ActionRequest(
            "Failed to initialize Android environment; Android support won't be usable until you "
            "fix the issue below and re-run `mobkit init`!",
            str(err),
        ).report().print()
        return False
    await android_project.gen(config, metadata.android, env, dot_cargo, filter)
    if not cmd.skip_dev_tools:
        await bundletool.install(cmd.reinstall_deps)
    return True


async def gen_all(
    config: Config,
    origin: Origin,
    cmd: Command,
    filter: templating.Filter = templating.Filter.ALL,
    platform: str = sys.platform,
) -> list[str]:
    """Render the base project and every supported platform project. Returns the platforms generated."""
    await project.gen(config, origin, cmd.non_interactive, filter)
    metadata = Metadata.load(config.app.root_dir).add_features(cmd.features)
    dot_cargo = DotCargo.load(config.app.root_dir)
    generated = []

    if not metadata.android.supported:
        print("Skipping Android init, since it's marked as unsupported in your Cargo.toml metadata")
    elif await _gen_android(config, metadata, dot_cargo, cmd, filter):
        generated.append("android")

    if platform == "darwin" and config.apple is not None:
        if metadata.apple.supported:
            await apple_project.gen(
                config, metadata.apple,
                non_interactive=cmd.non_interactive,
                skip_dev_tools=cmd.skip_dev_tools,
                reinstall_deps=cmd.reinstall_deps,
                filter=filter,
            )
            generated.append("apple")
        else:
            print("Skipping iOS init, since it's marked as unsupported in your Cargo.toml metadata")

    dot_cargo.set_env(config.env)
    dot_cargo.write()
    return generated


async def _open(config: Config, generated: list[str]) -> int:
    rc = 0
    for name in generated:
        result = await platforms.open_platform(name, config)
        print(result.message)
        if not result.success:
            rc = 1
    return rc


async def init(cmd: Command, cwd, platform: str = sys.platform) -> int:
    config, origin = await Config.load_or_gen(cwd, cmd.non_interactive, platform)
    generated = await gen_all(config, origin, cmd, templating.Filter.ALL, platform)
    print(f"✅ Project generated successfully! ({', '.join(generated) or 'no platforms'})")
    if cmd.open:
        return await _open(config, generated)
    return 0


async def new(cmd: Command, cwd, platform: str = sys.platform) -> int:
    name = cmd.app_name
    check_name(name)
    if cmd.domain:
        check_domain_syntax(cmd.domain)
    root_dir = Path(cwd).resolve() / name
    if root_dir.exists() and any(root_dir.iterdir()):
        raise NewProjectError(f"Can't create {name}", f"{root_dir} already exists and isn't empty")
    root_dir.mkdir(parents=True, exist_ok=True)

    raw = await detect_raw(root_dir, platform)
    updates: dict[str, Optional[str]] = {"name": name}
    if cmd.domain:
        updates["domain"] = cmd.domain
    if cmd.template_pack:
        templating.Pack.lookup(cmd.template_pack)
        updates["template_pack"] = cmd.template_pack
    raw = raw.model_copy(update={"app": raw.app.model_copy(update=updates)})
    config = Config.from_raw(root_dir, raw, platform)
    write_raw(root_dir, raw)
    print(f"Created {config.path}")

    generated = await gen_all(config, Origin.FRESHLY_MINTED, cmd, templating.Filter.ALL, platform)
    print(f"✅ {config.app.stylized_name} created in {root_dir} ({', '.join(generated) or 'no platforms'})")
    if cmd.open:
        return await _open(config, generated)
    return 0


async def update(cmd: Command, cwd, platform: str = sys.platform) -> int:
    config = Config.load_or_raise(cwd, platform)
    generated = await gen_all(config, Origin.LOADED, cmd, templating.Filter.MISSING_ONLY, platform)
    print(f"✅ Project updated ({', '.join(generated) or 'no platforms'})")
    return 0
