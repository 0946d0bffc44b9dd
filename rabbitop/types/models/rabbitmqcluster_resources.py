class RabbitmqClusterResources:
    """Encapsulates the naming scheme used for the resources which the operator manages
    for a RabbitmqCluster instance."""

    @classmethod
    def child_resource_name(self, instance_name: str, suffix: str):
        """Returns `<instance>-<suffix>`, the name of every child of an instance."""
        return f"{instance_name}-{suffix}"

    @classmethod
    def stateful_set_name(self, instance_name: str):
        return self.child_resource_name(instance_name, "server")

    @classmethod
    def service_account_name(self, instance_name: str):
        return self.stateful_set_name(instance_name)

    @classmethod
    def role_name(self, instance_name: str):
        return self.stateful_set_name(instance_name)

    @classmethod
    def role_binding_name(self, instance_name: str):
        return self.stateful_set_name(instance_name)

    @classmethod
    def client_service_name(self, instance_name: str):
        """Returns the name of the service clients connect through."""
        return self.child_resource_name(instance_name, "client")

    @classmethod
    def headless_service_name(self, instance_name: str):
        """Returns the name of the headless service that gives pods stable DNS names."""
        return self.child_resource_name(instance_name, "headless")

    @classmethod
    def server_config_name(self, instance_name: str):
        return self.child_resource_name(instance_name, "server-conf")

    @classmethod
    def admin_secret_name(self, instance_name: str):
        return self.child_resource_name(instance_name, "admin")

    @classmethod
    def erlang_cookie_secret_name(self, instance_name: str):
        return self.child_resource_name(instance_name, "erlang-cookie")

    @classmethod
    def pod_name(self, instance_name: str, ordinal: int):
        return f"{self.stateful_set_name(instance_name)}-{ordinal}"
