"""
Docker task runner.

Runs the script in a container created through the Docker SDK. The working
directory is bind-mounted at ``/app`` and used as the container's working
directory, so staged input files and produced output files are shared with
the host. The container is killed on timeout and always removed.
"""

import asyncio
import uuid
from typing import Any, Callable, Dict, List, Optional

import docker
from docker.errors import APIError, DockerException, ImageNotFound

from dlt_tasks.core.errors import ConfigurationError, TaskRunnerError
from dlt_tasks.core.logger import setup_logger
from dlt_tasks.runner.models import DockerOptions, ScriptOutput
from dlt_tasks.runner.script import OutputCollector
from dlt_tasks.runner.workdir import WorkingDirectory

logger = setup_logger(__name__, include_location=True)

CONTAINER_WORKDIR = "/app"
MANAGED_LABEL = "dlt_tasks.managed"


class DockerTaskRunner:
    """
    Run commands in a detached container and follow its logs.

    ``client`` is a ``docker.DockerClient``; by default one is built from the
    environment (or from ``base_url``) on first use.
    """

    name = "docker"

    def __init__(self, base_url: Optional[str] = None, client: Any = None):
        self.base_url = base_url
        self._client = client

    @property
    def client(self):
        if self._client is None:
            try:
                if self.base_url:
                    self._client = docker.DockerClient(base_url=self.base_url)
                else:
                    self._client = docker.from_env()
            except DockerException as e:
                raise TaskRunnerError(f"Cannot connect to the Docker daemon: {e}") from e
        return self._client

    def container_options(
        self,
        interpreter: List[str],
        script: str,
        workdir: WorkingDirectory,
        env: Dict[str, str],
        docker_options: Optional[DockerOptions],
    ) -> Dict[str, Any]:
        """Keyword arguments for ``client.containers.create``."""
        if docker_options is None or not docker_options.image:
            raise ConfigurationError("The docker task runner requires a container image")

        options: Dict[str, Any] = {
            "image": docker_options.image,
            "command": [*interpreter, script],
            "working_dir": CONTAINER_WORKDIR,
            "environment": {**(env or {}), "WORKING_DIR": CONTAINER_WORKDIR},
            "volumes": [f"{workdir.path}:{CONTAINER_WORKDIR}", *docker_options.volumes],
            "labels": {MANAGED_LABEL: "true"},
            "name": f"dlt_tasks_{uuid.uuid4().hex[:12]}",
        }
        if docker_options.entry_point is not None:
            options["entrypoint"] = list(docker_options.entry_point)
        if docker_options.user:
            options["user"] = docker_options.user
        if docker_options.network_mode:
            options["network_mode"] = docker_options.network_mode
        options.update(docker_options.extra_options)
        return options

    def _ensure_image(self, image: str, pull_policy: Optional[str]) -> None:
        images = self.client.images
        if pull_policy == "never":
            return
        if pull_policy == "always":
            logger.info(f"DOCKER RUNNER: pulling {image}")
            images.pull(image)
            return
        try:
            images.get(image)
        except ImageNotFound:
            logger.info(f"DOCKER RUNNER: {image} not present, pulling")
            images.pull(image)

    def _start(self, options: Dict[str, Any], pull_policy: Optional[str]):
        image = options["image"]
        try:
            self._ensure_image(image, pull_policy)
            container = self.client.containers.create(**options)
        except DockerException as e:
            raise TaskRunnerError(f"Cannot create a container from {image}: {e}") from e
        try:
            container.start()
        except DockerException as e:
            self._remove(container)
            raise TaskRunnerError(f"Cannot start container {options['name']}: {e}") from e
        logger.info(f"DOCKER RUNNER: started container {options['name']} from {image}")
        return container

    @staticmethod
    def _follow(container, collector: OutputCollector, is_stderr: bool) -> None:
        chunks = container.logs(stream=True, follow=True, stdout=not is_stderr, stderr=is_stderr)
        collector.feed_chunks(chunks, is_stderr)

    @staticmethod
    def _kill(container) -> None:
        try:
            container.kill()
        except APIError as e:
            # already stopped
            logger.warning(f"DOCKER RUNNER: kill failed: {e}")

    @staticmethod
    def _remove(container) -> None:
        try:
            container.remove(force=True)
        except APIError as e:
            logger.warning(f"DOCKER RUNNER: could not remove container: {e}")

    async def run(
        self,
        interpreter: List[str],
        script: str,
        workdir: WorkingDirectory,
        env: Optional[Dict[str, str]] = None,
        docker: Optional[DockerOptions] = None,
        timeout: Optional[float] = None,
        line_callback: Optional[Callable[[str, bool], None]] = None,
    ) -> ScriptOutput:
        """
        Create, start and wait for the container.

        Log lines are read on worker threads, so ``line_callback`` is called
        from those threads. Raises TaskRunnerError when the daemon refuses
        to create or start the container.
        """
        options = self.container_options(interpreter, script, workdir, env or {}, docker)
        logger.debug(f"DOCKER RUNNER: image={options['image']} env_keys={sorted((env or {}).keys())}")

        container = await asyncio.to_thread(self._start, options, docker.pull_policy)
        collector = OutputCollector(logger, line_callback)
        logs = asyncio.gather(
            asyncio.to_thread(self._follow, container, collector, False),
            asyncio.to_thread(self._follow, container, collector, True),
            return_exceptions=True,
        )

        timed_out = False
        try:
            try:
                status = await asyncio.wait_for(asyncio.to_thread(container.wait), timeout=timeout)
            except asyncio.TimeoutError:
                timed_out = True
                logger.error(f"DOCKER RUNNER: timed out after {timeout}s, killing container {options['name']}")
                await asyncio.to_thread(self._kill, container)
                status = await asyncio.to_thread(container.wait)
            await logs
        finally:
            await asyncio.to_thread(self._remove, container)
            for error in await logs:
                if isinstance(error, Exception):
                    logger.warning(f"DOCKER RUNNER: log stream ended with error: {error}")

        exit_code = int(status.get("StatusCode", -1))
        logger.debug(
            f"DOCKER RUNNER: exit_code={exit_code} "
            f"stdout_lines={collector.stdout_lines} stderr_lines={collector.stderr_lines}"
        )
        return collector.result(exit_code, self.name, timed_out=timed_out)
