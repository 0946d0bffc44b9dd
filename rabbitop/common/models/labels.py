from typing import Dict


class ResourceLabels:
    RABBITOP_DOMAIN: str = "rabbitop.io/"


class Labels(ResourceLabels):
    KUBERNETES_DOMAIN = "app.kubernetes.io/"

    KUBERNETES_NAME_LABEL = KUBERNETES_DOMAIN + "name"

    KUBERNETES_COMPONENT_LABEL = KUBERNETES_DOMAIN + "component"

    KUBERNETES_PART_OF_LABEL = KUBERNETES_DOMAIN + "part-of"

    KUBERNETES_MANAGED_BY_LABEL = KUBERNETES_DOMAIN + "managed-by"

    APPLICATION_NAME = "rabbitmq"

    _labels: Dict[str, str]

    def __init__(self, labels: Dict[str, str] = None) -> None:
        self._labels = dict(labels) if labels else dict()

    def update(self, labels: Dict[str, str]) -> "Labels":
        self._labels.update(labels.copy())
        return self

    def as_dict(self) -> Dict[str, str]:
        """Return labels as dictionary."""
        return self._labels.copy()

    def as_str(self):
        """Return labels as comma separated string, usable as a label selector."""
        return ",".join([f"{k}={v}" for k, v in self._labels.items()])

    def include(self, label: str, value: str) -> "Labels":
        self.update({label: value})
        return self

    def include_kubernetes_name(self, name: str) -> "Labels":
        return self.include(self.KUBERNETES_NAME_LABEL, self.valid_label_value(name))

    def include_kubernetes_component(self, component: str) -> "Labels":
        return self.include(self.KUBERNETES_COMPONENT_LABEL, component)

    def include_kubernetes_part_of(self, part_of: str) -> "Labels":
        return self.include(self.KUBERNETES_PART_OF_LABEL, part_of)

    def include_kubernetes_managed_by(self, operator_name: str) -> "Labels":
        return self.include(self.KUBERNETES_MANAGED_BY_LABEL, operator_name)

    @classmethod
    def valid_label_value(cls, value: str) -> str:
        """Trim a value to a valid label value:
        * (([A-Za-z0-9][-A-Za-z0-9_.]*)?[A-Za-z0-9])?
        * 63 characters max
        """
        if not value:
            return ""
        return value[:63].rstrip(".-_")

    def __str__(self):
        return f"Labels<{self._labels}>"

    @classmethod
    def generate_default_labels(cls, instance_name: str, managed_by: str) -> "Labels":
        """Labels the operator owns on every child of an instance."""
        return (
            Labels()
            .include_kubernetes_name(instance_name)
            .include_kubernetes_component(cls.APPLICATION_NAME)
            .include_kubernetes_part_of(cls.APPLICATION_NAME)
            .include_kubernetes_managed_by(managed_by)
        )

    @classmethod
    def generate_selector_labels(cls, instance_name: str) -> "Labels":
        """Labels that identify the pods of an instance. Must never change."""
        return Labels().include_kubernetes_name(instance_name)
