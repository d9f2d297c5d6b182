"""
AddAgentServices — register the global-zone agents as SAPI services.

Bootstraps one ``type=agent`` service per known agent in the target
application, skipping agents that already have one. Needs a service
directory recent enough to understand agent services.
"""

from __future__ import annotations

import logging
import textwrap
from dataclasses import dataclass, field

from dcadm.core.context import EngineContext
from dcadm.core.engine.executor import run_units
from dcadm.core.engine.pipeline import Step, run_pipeline
from dcadm.core.engine.planner import plan_missing
from dcadm.core.errors import CauseKind, ClientError, DcadmError, RemoteCallError
from dcadm.core.models.change import ChangeDescriptor
from dcadm.core.models.resources import AgentService, ServiceSpec
from dcadm.core.models.step import StepResult

logger = logging.getLogger(__name__)

SERVICE = "sapi"

# First SAPI build with type=agent services
MIN_VALID_SAPI_VERSION = "20140703"

DEFAULT_AGENTS = (
    "vm-agent",
    "net-agent",
    "cn-agent",
    "agents_core",
    "amon-agent",
    "amon-relay",
    "cabase",
    "cainstsvc",
    "config-agent",
    "firewaller",
    "hagfish-watcher",
    "smartlogin",
)


def agent_service_spec(name: str) -> ServiceSpec:
    """The creation payload for an agent's service."""
    log_level_key = name.upper().replace("-", "_") + "_LOG_LEVEL"
    return ServiceSpec(
        type="agent",
        params={"tags": {"smartdc_role": name, "smartdc_type": "core"}},
        metadata={"SERVICE_NAME": name, log_level_key: "info"},
        manifests={},
    )


def sapi_supports_agents(version: str) -> bool:
    """Whether a SAPI image version (``master-…``/``release-…``) is new enough."""
    branch, _, rest = version.partition("-")
    if branch not in ("master", "release") or not rest:
        return False
    return rest[:8] >= MIN_VALID_SAPI_VERSION


@dataclass
class AddAgentServices:
    """Create the missing agent services."""

    agent_names: list[str] = field(default_factory=lambda: list(DEFAULT_AGENTS))
    application_uuid: str = ""
    missing: list[str] | None = field(default=None, repr=False)

    name = "add-new-agent-svcs"
    title = "Add new agent services"

    @property
    def work(self) -> list[AgentService]:
        names = self.missing if self.missing is not None else self.agent_names
        return [AgentService(name=n, spec=agent_service_spec(n)) for n in names]

    def summarize(self) -> str:
        services = self.work
        if not services:
            return "no new agent services to add"
        return "add %d agent service%s:\n%s" % (
            len(services),
            "" if len(services) == 1 else "s",
            textwrap.indent("\n".join(s.name for s in services), "    "),
        )

    def changes(self) -> list[ChangeDescriptor]:
        return [
            ChangeDescriptor(subject_type="service", subject_name=s.name, action="create")
            for s in self.work
        ]

    async def plan(self, ctx: EngineContext) -> None:
        sapi = ctx.clients.directory
        progress = ctx.progress

        progress("Checking for minimum SAPI version")
        try:
            image = await sapi.get_service_image("sapi")
            if not self.application_uuid:
                self.application_uuid = (
                    ctx.config.application_uuid
                    or await sapi.get_application_uuid(ctx.config.application_name)
                )
        except RemoteCallError as e:
            raise ClientError(e, SERVICE) from e

        if not sapi_supports_agents(image.version):
            raise ClientError(
                RemoteCallError(
                    "Datacenter does not have the minimum SAPI version needed for "
                    "adding service agents. Please try again after upgrading SAPI",
                    CauseKind.VALIDATION,
                ),
                SERVICE,
            )

        async def service_exists(agent: str) -> bool:
            progress("Checking if service '%s' exists", agent)
            try:
                services = await sapi.list_services(
                    {"name": agent, "type": "agent", "application_uuid": self.application_uuid}
                )
            except RemoteCallError as e:
                raise ClientError(e, SERVICE, agent) from e
            return bool(services)

        self.missing = await plan_missing(self.agent_names, service_exists)

    async def execute(self, ctx: EngineContext) -> DcadmError | None:
        sapi = ctx.clients.directory

        async def create_service(service: AgentService) -> StepResult:
            ctx.progress("Adding service for agent '%s'", service.name)
            logger.debug(
                "Adding new agent service %s: %s", service.name, service.spec.model_dump()
            )
            try:
                await sapi.create_service(service.name, self.application_uuid, service.spec)
            except RemoteCallError as e:
                return StepResult.failure(
                    "create", service.name, ClientError(e, SERVICE, service.name)
                )
            return StepResult.success("create", service.name)

        steps = [Step("create", create_service)]

        async def add_service(service: AgentService) -> None:
            result = await run_pipeline(service.name, steps, service)
            result.raise_for_failure()

        return await run_units(
            self.work, add_service, concurrency=ctx.concurrency, name=self.name
        )
