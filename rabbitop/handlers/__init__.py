from rabbitop.handlers import probes, rabbitmqcluster

__all__ = ["probes", "rabbitmqcluster"]
