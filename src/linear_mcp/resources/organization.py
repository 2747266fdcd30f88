"""Organization resource."""

from ..client import LinearClient
from ..formatting import format_organization
from ..router import ResourceRouter


def register_organization_resources(router: ResourceRouter, client: LinearClient) -> None:
    @router.resource(
        "organization",
        "linear://organization",
        description="Information about the Linear organization",
    )
    async def read_organization(uri: str, variables: dict[str, str]) -> str:
        return format_organization(await client.get_organization())
