"""Networking constructs: VPC and the cluster security group."""
