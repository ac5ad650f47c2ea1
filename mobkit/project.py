"""
project.py — Base project generation: git repo plus the app's template pack.
"""

import logging
from pathlib import Path

from mobkit import config as settings
from mobkit import prompt, shell, templating
from mobkit.project_config import Config, Origin
from mobkit.report import ActionRequest, MobkitError

logger = logging.getLogger(__name__)


class ProjectGenError(MobkitError):
    pass


class OverwriteDenied(ActionRequest):
    def __init__(self, paths: list[Path]):
        super().__init__(
            "Initialization cancelled",
            "Nothing was overwritten:\n" + "\n".join(f"  {path}" for path in paths),
        )
        self.paths = paths


async def git_init(root_dir: Path):
    if (root_dir / ".git").exists():
        logger.info(".git dir already present at %s", root_dir)
        return
    rc, out, err = await shell.run([settings.GIT_BIN, "init"], cwd=str(root_dir))
    if rc != 0:
        raise ProjectGenError("Failed to initialize git repo", (out + err).strip())


def existing_targets(chain, dest: Path, data: dict) -> list[Path]:
    existing = []
    for pack in chain:
        for _, target, _ in templating.planned_files(pack.path, dest, data):
            if target.exists() and target not in existing:
                existing.append(target)
    return existing


def confirm_overwrite(existing: list[Path], non_interactive: bool):
    if not existing or non_interactive:
        return
    print("The following files will be overwritten:")
    for path in existing:
        print(f"  {path}")
    if not prompt.yes_no("Do you want to continue?", True):
        raise OverwriteDenied(existing)


async def gen(
    config: Config,
    origin: Origin,
    non_interactive: bool = False,
    filter: templating.Filter = templating.Filter.ALL,
) -> list[Path]:
    root_dir = config.app.root_dir
    await git_init(root_dir)
    chain = templating.Pack.lookup(config.app.template_pack).resolve_chain()
    data = templating.template_data(config)
    if origin.freshly_minted and filter is templating.Filter.ALL:
        confirm_overwrite(existing_targets(chain, root_dir, data), non_interactive)
    written = templating.process_chain(chain, root_dir, data, filter)
    config.app.asset_dir.mkdir(parents=True, exist_ok=True)
    return written
