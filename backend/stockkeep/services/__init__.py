# Overview: Service layer; stores, protocols and helpers over the storage port.
