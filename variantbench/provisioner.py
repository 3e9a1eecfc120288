"""
Environment provisioning: container runtime, download tooling and images.

Every step checks for the capability first and only installs or pulls what
is missing, so the provisioner is safe to run on every invocation. Commands
run through :func:`variantbench.utils.run_command`, which tests replace with
a mock.
"""

import logging
import subprocess
from typing import List

from .models import RunConfig
from .pipeline_core.error_handling import (
    ProvisioningError,
    ToolNotFoundError,
    retry_on_failure,
)
from .utils import check_external_tools, run_command

logger = logging.getLogger(__name__)

DOCKER_APT_URL = "https://download.docker.com/linux/ubuntu"

DOCKER_PREREQUISITES = [
    "apt-transport-https",
    "ca-certificates",
    "curl",
    "gnupg-agent",
    "software-properties-common",
]


class EnvironmentProvisioner:
    """Make the container runtime, aria2c and the caller image available.

    Parameters
    ----------
    run_config : RunConfig
        Run configuration; ``use_sudo``, ``bin_version`` and
        ``build_retry_delay`` are read from it.
    build_context : str
        Directory passed to ``docker build`` when building locally.
    """

    def __init__(self, run_config: RunConfig, build_context: str = "."):
        self.run_config = run_config
        self.build_context = build_context

    def _privileged(self, cmd: List[str]) -> List[str]:
        return (["sudo"] + cmd) if self.run_config.use_sudo else cmd

    def docker_command(self, *args: str) -> List[str]:
        """Return a docker invocation, prefixed with sudo when configured."""
        return self._privileged(["docker", *args])

    def _apt_install(self, packages: List[str]) -> None:
        run_command(self._privileged(["apt-get", "-qq", "-y", "install", *packages]))

    def _apt_update(self) -> None:
        run_command(self._privileged(["apt-get", "-qq", "-y", "update"]))

    def ensure_runtime(self) -> None:
        """Install aria2 and docker if they are not already on PATH.

        Raises
        ------
        ProvisioningError
            If an installation command fails
        ToolNotFoundError
            If a tool is still missing after its package was installed
        """
        installers = (
            ("aria2c", "aria2", self._install_aria2),
            ("docker", "docker", self._install_docker),
        )
        try:
            for tool, package, install in installers:
                if check_external_tools([tool]):
                    logger.info(f"{tool} found in PATH")
                    continue
                logger.info(f"'{tool}' was not found in PATH. Installing {package}...")
                install()
                if not check_external_tools([tool]):
                    raise ToolNotFoundError(tool)
        except (subprocess.CalledProcessError, OSError) as e:
            raise ProvisioningError(f"Failed to provision runtime: {e}") from e

    def _install_aria2(self) -> None:
        self._apt_update()
        self._apt_install(["aria2"])

    def _install_docker(self) -> None:
        # https://docs.docker.com/install/linux/docker-ce/ubuntu/
        self._apt_install(DOCKER_PREREQUISITES)
        key = subprocess.run(
            ["curl", "-fsSL", f"{DOCKER_APT_URL}/gpg"],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=True,
        ).stdout
        subprocess.run(self._privileged(["apt-key", "add", "-"]), input=key, check=True)
        codename = run_command(["lsb_release", "-cs"]).strip()
        run_command(
            self._privileged(
                [
                    "add-apt-repository",
                    f"deb [arch=amd64] {DOCKER_APT_URL} {codename} stable",
                ]
            )
        )
        self._apt_update()
        self._apt_install(["docker-ce"])

    def ensure_image(self, build_locally: bool) -> str:
        """Build or pull the caller image.

        Parameters
        ----------
        build_locally : bool
            Build from the Dockerfile in ``build_context`` (one retry after
            ``build_retry_delay`` seconds) instead of pulling the pinned release.

        Returns
        -------
        str
            Image reference for ``docker run``

        Raises
        ------
        ProvisioningError
            If the build (after its retry) or the pull fails
        """
        if build_locally:
            image = f"{self.run_config.local_image_name}:latest"
            try:
                self._build_image()
            except (subprocess.CalledProcessError, OSError) as e:
                raise ProvisioningError(f"Failed to build docker image {image}: {e}") from e
            logger.info(f"Done building Docker image {image}.")
            return image

        image = f"{self.run_config.deepvariant_image}:{self.run_config.bin_version}"
        try:
            self.pull_image(image)
        except (subprocess.CalledProcessError, OSError) as e:
            raise ProvisioningError(f"Failed to pull docker image {image}: {e}") from e
        return image

    def _build_image(self) -> None:
        # Builds can time out on the first attempt; retry exactly once.
        build = retry_on_failure(
            max_attempts=2,
            delay=self.run_config.build_retry_delay,
            exceptions=(subprocess.CalledProcessError,),
            logger=logger,
        )(run_command)
        build(
            self.docker_command(
                "build", "-t", self.run_config.local_image_name, self.build_context
            )
        )

    def pull_image(self, image: str) -> None:
        """Pull an image from its registry."""
        logger.info(f"Pulling docker image {image}")
        run_command(self.docker_command("pull", image))
