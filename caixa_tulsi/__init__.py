# ==============================================================================
# CAIXA TULSI - Caja diaria del restaurante/hotel
# ==============================================================================
# Lanzamientos diarios por período, totales agregados y reportes.
# ==============================================================================

__version__ = '1.0.0'
