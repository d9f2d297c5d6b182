"""
DownloadImages — import images from the updates server into IMGAPI.

Each image runs a two-step pipeline:

    1. delete the local copy if a previous import left it unactivated
    2. import it from the remote source (the client retries 5 times)

Images that are already active locally are planned out of the run.
"""

from __future__ import annotations

import logging
import textwrap
from dataclasses import dataclass, field

from dcadm.core.context import EngineContext
from dcadm.core.engine.executor import run_units
from dcadm.core.engine.pipeline import Step, run_pipeline
from dcadm.core.engine.planner import plan_missing
from dcadm.core.errors import ClientError, DcadmError, RemoteCallError
from dcadm.core.models.change import ChangeDescriptor
from dcadm.core.models.resources import MIB, Image
from dcadm.core.models.step import StepResult
from dcadm.core.observability.progress import Progress

logger = logging.getLogger(__name__)

IMPORT_RETRIES = 5
SERVICE = "imgapi"


@dataclass
class DownloadImages:
    """Import a list of images.

    Args:
        images: Images to import.
        source: IMGAPI endpoint to import from. Defaults to the
            configured updates server and channel.
    """

    images: list[Image]
    source: str | None = None
    planned: list[Image] | None = field(default=None, repr=False)

    name = "download-images"
    title = "Download images"

    @property
    def work(self) -> list[Image]:
        """The planned images, or all of them before planning."""
        return self.planned if self.planned is not None else self.images

    def summarize(self) -> str:
        images = self.work
        size = sum(img.size for img in images)
        infos = [f"image {img.uuid}\n    ({img.name}@{img.version})" for img in images]
        return "download %d image%s (%d MiB):\n%s" % (
            len(images),
            "" if len(images) == 1 else "s",
            size // MIB,
            textwrap.indent("\n".join(infos), "    "),
        )

    def changes(self) -> list[ChangeDescriptor]:
        return [
            ChangeDescriptor(subject_type="image", subject_name=img.uuid, action="import")
            for img in self.work
        ]

    async def plan(self, ctx: EngineContext) -> None:
        imgapi = ctx.clients.images
        local_state: dict[str, str] = {}

        async def is_active(uuid: str) -> bool:
            try:
                local = await imgapi.get_image(uuid)
            except RemoteCallError as e:
                raise ClientError(e, SERVICE, uuid) from e
            if local is None:
                return False
            local_state[uuid] = local.state
            return local.state == "active"

        by_uuid = {img.uuid: img for img in self.images}
        missing = await plan_missing(by_uuid, is_active)
        self.planned = [
            by_uuid[uuid].model_copy(update={"state": local_state[uuid]})
            if uuid in local_state
            else by_uuid[uuid]
            for uuid in missing
        ]
        skipped = len(by_uuid) - len(missing)
        if skipped:
            ctx.progress("%d image%s already imported", skipped, "" if skipped == 1 else "s")

    async def execute(self, ctx: EngineContext) -> DcadmError | None:
        source = self.source or ctx.config.image_source_url
        steps = image_steps(ctx, source)

        async def import_image(image: Image) -> None:
            result = await run_pipeline(image.uuid, steps, image)
            result.raise_for_failure()

        return await run_units(
            self.work, import_image, concurrency=ctx.concurrency, name=self.name
        )


def image_steps(ctx: EngineContext, source: str) -> list[Step[Image]]:
    """The per-image pipeline: drop an unactivated copy, then import."""
    imgapi = ctx.clients.images
    progress: Progress = ctx.progress

    async def delete_unactivated(image: Image) -> StepResult:
        if image.state != "unactivated":
            return StepResult.skip("delete-unactivated", image.uuid, f"image is {image.state}")

        progress("Removing unactivated image %s\n(%s)", image.uuid, image.label)
        try:
            await imgapi.delete_image(image.uuid)
        except RemoteCallError as e:
            progress("Error removing unactivated image %s\n(%s)", image.uuid, image.label)
            err = ClientError(e, SERVICE, image.uuid)
            logger.error("Error removing image: %s", err)
            return StepResult.failure("delete-unactivated", image.uuid, err)
        return StepResult.success("delete-unactivated", image.uuid)

    async def import_remote(image: Image) -> StepResult:
        progress("Downloading image %s\n    (%s)", image.uuid, image.label)
        try:
            await imgapi.import_remote(
                image.uuid,
                source,
                skip_owner_check=True,
                retries=IMPORT_RETRIES,
            )
        except RemoteCallError as e:
            progress("Error importing image %s\n(%s)", image.uuid, image.label)
            return StepResult.failure("import", image.uuid, ClientError(e, SERVICE, image.uuid))
        progress("Imported image %s\n    (%s)", image.uuid, image.label)
        return StepResult.success("import", image.uuid)

    return [
        Step("delete-unactivated", delete_unactivated),
        Step("import", import_remote),
    ]
