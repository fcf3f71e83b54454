"""
Deployment pipeline planner.

The branch being built decides where (and whether) the image is pushed and
deployed. That decision is made once, by ``resolve_target``, and the rest of
the plan reads it from the resulting ``DeploymentTarget``.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from enum import Enum
from typing import List, Optional

import click

DEFAULT_IMAGE = "catalog-api"
DEFAULT_DEPLOYMENT = "catalog-api"


class DeploymentTarget(Enum):
    PROD = ("prod", "latest", True)
    STAGING = ("staging", "staging-latest", False)
    DEV = ("dev", "dev-latest", False)
    NONE = (None, None, False)

    def __init__(self, namespace, tag_suffix, requires_approval):
        self.namespace = namespace
        self.tag_suffix = tag_suffix
        self.requires_approval = requires_approval

    @property
    def deploys(self) -> bool:
        return self is not DeploymentTarget.NONE


def resolve_target(branch: str) -> DeploymentTarget:
    """Maps a branch name to the environment it ships to."""
    if branch == "main":
        return DeploymentTarget.PROD
    if branch == "develop":
        return DeploymentTarget.DEV
    if branch.startswith("release/"):
        return DeploymentTarget.STAGING
    return DeploymentTarget.NONE


def image_tags(image: str, build_id: str, target: DeploymentTarget) -> List[str]:
    tags = [f"{image}:{build_id}"]
    if target.tag_suffix:
        tags.append(f"{image}:{target.tag_suffix}")
    return tags


@dataclass
class Stage:
    name: str
    command: str
    blocking: bool = True
    requires_approval: bool = False
    always_run: bool = False


@dataclass
class PipelinePlan:
    branch: str
    build_id: str
    target: DeploymentTarget
    tags: List[str]
    stages: List[Stage]

    def to_dict(self) -> dict:
        return {
            "branch": self.branch,
            "build_id": self.build_id,
            "target": self.target.name.lower(),
            "namespace": self.target.namespace,
            "tags": self.tags,
            "stages": [asdict(stage) for stage in self.stages],
        }


def plan(
    branch: str,
    build_id: str,
    image: str = DEFAULT_IMAGE,
    deployment: str = DEFAULT_DEPLOYMENT,
    target: Optional[DeploymentTarget] = None,
) -> PipelinePlan:
    """Builds the ordered stage list for one pipeline run.

    Push and deploy only appear for branches that resolve to a target;
    the scan never fails the run and cleanup always runs.
    """
    target = target or resolve_target(branch)
    tags = image_tags(image, build_id, target)
    tag_args = " ".join(f"-t {tag}" for tag in tags)

    stages = [
        Stage("install-and-lint", "pip install -e .[test,lint] && ruff check ."),
        Stage("test", "pytest"),
        Stage("build-image", f"docker build {tag_args} ."),
        Stage("scan", f"trivy image {tags[0]}", blocking=False),
    ]
    if target.deploys:
        stages.append(Stage("push", " && ".join(f"docker push {tag}" for tag in tags)))
        stages.append(Stage(
            "deploy",
            f"kubectl set image deployment/{deployment} {deployment}={tags[0]} -n {target.namespace}",
            requires_approval=target.requires_approval,
        ))
    stages.append(Stage("cleanup", "docker system prune -f", always_run=True))

    return PipelinePlan(branch=branch, build_id=build_id, target=target, tags=tags, stages=stages)


@click.group()
def cli() -> None:
    """Catalog API deployment pipeline."""


@cli.command("plan")
@click.option("--branch", required=True, help="Branch being built.")
@click.option("--build-id", required=True, help="Build identifier used as the image tag.")
@click.option("--image", default=DEFAULT_IMAGE, show_default=True, help="Image repository.")
@click.option("--deployment", default=DEFAULT_DEPLOYMENT, show_default=True, help="Deployment to update.")
@click.option("--json", "as_json", is_flag=True, help="Print the plan as JSON.")
def plan_command(branch: str, build_id: str, image: str, deployment: str, as_json: bool) -> None:
    """Show the stages a run on BRANCH would execute."""
    result = plan(branch, build_id, image=image, deployment=deployment)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    namespace = result.target.namespace or "-"
    click.echo(f"Branch {branch} -> target {result.target.name.lower()} (namespace {namespace})")
    click.echo(f"Tags: {', '.join(result.tags)}")
    for stage in result.stages:
        flags = []
        if not stage.blocking:
            flags.append("non-blocking")
        if stage.requires_approval:
            flags.append("manual approval")
        if stage.always_run:
            flags.append("always")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        click.echo(f"  {stage.name:<18} {stage.command}{suffix}")


if __name__ == "__main__":
    cli()
