"""Container engine configuration types.

Field aliases are the engine API's JSON names, so ``model_dump(by_alias=True)``
yields request bodies directly.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

MOUNT_TYPE_BIND = "bind"
PROPAGATION_RSHARED = "rshared"
CONSISTENCY_DEFAULT = "default"


class _EngineModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_api(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class BindOptions(_EngineModel):
    propagation: str | None = Field(default=None, alias="Propagation")
    non_recursive: bool = Field(default=False, alias="NonRecursive")


class Mount(_EngineModel):
    type: str = Field(default=MOUNT_TYPE_BIND, alias="Type")
    source: str = Field(alias="Source")
    target: str = Field(alias="Target")
    read_only: bool = Field(default=False, alias="ReadOnly")
    consistency: str | None = Field(default=None, alias="Consistency")
    bind_options: BindOptions | None = Field(default=None, alias="BindOptions")


class HostConfig(_EngineModel):
    mounts: list[Mount] = Field(default_factory=list, alias="Mounts")
    network_mode: str | None = Field(default=None, alias="NetworkMode")
    group_add: list[str] | None = Field(default=None, alias="GroupAdd")
    auto_remove: bool = Field(default=False, alias="AutoRemove")
    readonly_rootfs: bool = Field(default=False, alias="ReadonlyRootfs")
    cap_drop: list[str] | None = Field(default=None, alias="CapDrop")
    security_opt: list[str] | None = Field(default=None, alias="SecurityOpt")
    runtime: str | None = Field(default=None, alias="Runtime")


class NetworkConfig(_EngineModel):
    endpoints_config: dict[str, dict[str, Any]] = Field(default_factory=dict, alias="EndpointsConfig")


class ContainerConfig(_EngineModel):
    image: str = Field(alias="Image")
    cmd: list[str] | None = Field(default=None, alias="Cmd")
    entrypoint: list[str] | None = Field(default=None, alias="Entrypoint")
    env: list[str] = Field(default_factory=list, alias="Env")
    working_dir: str | None = Field(default=None, alias="WorkingDir")
    user: str | None = Field(default=None, alias="User")
    labels: dict[str, str] | None = Field(default=None, alias="Labels")
    tty: bool = Field(default=False, alias="Tty")


class PluginContainerConfig(BaseModel):
    """Everything needed to create a plugin's container."""

    container_config: ContainerConfig
    host_config: HostConfig = Field(default_factory=HostConfig)
    network_config: NetworkConfig | None = None
    unix_socket_group: int = 0  # gid for the plugin's socket; 0 leaves it alone

    def create_body(self) -> dict[str, Any]:
        body = self.container_config.to_api()
        body["HostConfig"] = self.host_config.to_api()
        if self.network_config is not None:
            body["NetworkingConfig"] = self.network_config.to_api()
        return body


class WaitError(_EngineModel):
    message: str = Field(default="", alias="Message")


class WaitStatus(_EngineModel):
    status_code: int = Field(default=0, alias="StatusCode")
    error: WaitError | None = Field(default=None, alias="Error")
