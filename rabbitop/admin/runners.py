import asyncio
import shlex
from typing import Optional, Protocol, Sequence, Tuple

from kubernetes_asyncio.client import CoreV1Api
from kubernetes_asyncio.stream import WsApiClient

from rabbitop.admin.diagnostics import DiagnosticOutcome

EXIT_CODE_MARKER = "__EXIT_CODE__"
COMMAND_NOT_FOUND_EXIT_CODE = 127


class CommandRunner(Protocol):
    async def run(self, command: Sequence[str]) -> DiagnosticOutcome:
        ...


class LocalCommandRunner:
    """Runs commands in the current container, as the pre-stop guard does."""

    async def run(self, command: Sequence[str]) -> DiagnosticOutcome:
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except FileNotFoundError as ex:
            return DiagnosticOutcome(command, COMMAND_NOT_FOUND_EXIT_CODE, str(ex))
        stdout, _ = await process.communicate()
        return DiagnosticOutcome(
            command, process.returncode, stdout.decode(errors="replace")
        )


def parse_exec_output(response: str) -> Tuple[Optional[int], str]:
    """Split pod exec output into (exit code, command output).

    Exec over websocket only returns the streams, so the wrapped command
    echoes its exit code after a marker.
    """
    output, marker, code = (response or "").rpartition(EXIT_CODE_MARKER)
    if not marker:
        return None, response or ""
    try:
        return int(code.strip()), output.rstrip("\n")
    except ValueError:
        return None, output.rstrip("\n")


class PodExecCommandRunner:
    """Runs commands inside a broker pod through the exec subresource."""

    def __init__(self, namespace: str, pod_name: str, container: str = "rabbitmq") -> None:
        self.namespace = namespace
        self.pod_name = pod_name
        self.container = container

    def wrap(self, command: Sequence[str]):
        quoted = " ".join(shlex.quote(part) for part in command)
        return ["/bin/sh", "-c", f'{quoted} 2>&1; echo "{EXIT_CODE_MARKER}$?"']

    async def run(self, command: Sequence[str]) -> DiagnosticOutcome:
        async with WsApiClient() as ws_api:
            v1_ws = CoreV1Api(api_client=ws_api)
            resp = await v1_ws.connect_get_namespaced_pod_exec(
                self.pod_name,
                self.namespace,
                container=self.container,
                command=self.wrap(command),
                stderr=True,
                stdin=False,
                stdout=True,
                tty=False,
                _preload_content=True,
            )
        exit_code, output = parse_exec_output(resp)
        return DiagnosticOutcome(command, exit_code, output)
