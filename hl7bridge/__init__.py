"""
HL7 Bridge: HL7 v2.x to FHIR interoperability pipeline.
"""

__version__ = "1.0.0"
