"""
Pipeline de sincronización one-way del catalogo: Airtable -> PostgreSQL.

Este paquete está diseñado para ejecutarse como job (script / thread de la API),
no dentro del request/response.

Objetivos de diseño:
- Idempotencia: se puede ejecutar N veces sin duplicar datos.
- Esquema explícito y tipado en PostgreSQL (registro de tipos de tabla).
- Control total: mapeo/transformaciones en código.
"""
