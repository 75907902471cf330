#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Raw (user-facing) gateway options

These models only describe the shape of what the host hands to
Gateway.start(). Every field is optional here: mandatory keys and
defaults are handled by the resolver so that its error messages can
name the missing field
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Options(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class PathOptions(_Options):
    path: Optional[str] = None
    topic: Optional[str] = None
    retain: Optional[bool] = None
    interval: Optional[float] = None  # seconds
    meta: Optional[bool] = None


class TopicOptions(_Options):
    topic: Optional[str] = None
    path: Optional[str] = None


class PublicationOptions(_Options):
    root: Optional[str] = None
    retain_default: Optional[bool] = Field(default=None, alias="retainDefault")
    retain: Optional[bool] = None
    interval_default: Optional[float] = Field(default=None, alias="intervalDefault")
    interval: Optional[float] = None
    meta_default: Optional[bool] = Field(default=None, alias="metaDefault")
    meta: Optional[bool] = None
    paths: Optional[List[PathOptions]] = None


class SubscriptionOptions(_Options):
    root: Optional[str] = None
    strict: Optional[bool] = None
    topics: Optional[List[TopicOptions]] = None


class BrokerOptions(_Options):
    url: Optional[str] = None
    mqtt_broker_url: Optional[str] = Field(default=None, alias="mqttBrokerUrl")
    username: Optional[str] = None
    password: Optional[str] = None
    mqtt_client_credentials: Optional[str] = Field(default=None, alias="mqttClientCredentials")
    reject_unauthorised: Optional[bool] = Field(default=None, alias="rejectUnauthorised")
    client_id: Optional[str] = Field(default=None, alias="clientId")


class GatewayOptions(_Options):
    broker_url: Optional[str] = Field(default=None, alias="brokerUrl")
    broker_credentials: Optional[str] = Field(default=None, alias="brokerCredentials")
    reject_unauthorised: Optional[bool] = Field(default=None, alias="rejectUnauthorised")
    client_id: Optional[str] = Field(default=None, alias="clientId")
    # Legacy top-level publication defaults
    interval: Optional[float] = None
    retain: Optional[bool] = None
    meta: Optional[bool] = None
    broker: Optional[BrokerOptions] = None
    publication: Optional[PublicationOptions] = None
    subscription: Optional[SubscriptionOptions] = None
