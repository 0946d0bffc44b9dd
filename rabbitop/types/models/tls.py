from rabbitop.types.base import BaseModel


class RabbitmqClusterTls(BaseModel):
    """TLS configuration; the referenced secret holds tls.crt and tls.key."""

    secret_name: str
