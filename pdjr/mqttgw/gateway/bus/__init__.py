#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Bus side of the gateway

Bus = the path-keyed data store the gateway bridges to MQTT
(a Signal K server self tree in production)

  - base    (Bus interface + BusValue snapshot)
  - memory  (in-process tree; used for local runs and tests)
  - delta   (update envelope: add_value().commit().clear())
"""
