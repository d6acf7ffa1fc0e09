"""
Local development server for the VacAItion backend.

Starts uvicorn with auto-reload and prints the available endpoints.
"""

import uvicorn

if __name__ == "__main__":
    print("=" * 60)
    print("Starting VacAItion Backend")
    print("=" * 60)
    print()
    print("📌 API Endpoints:")
    print("   - Health Check:  GET  http://localhost:8000/health")
    print("   - Activities:    POST http://localhost:8000/recommendations/activities")
    print("   - Destination:   POST http://localhost:8000/recommendations/destination")
    print("   - API Docs:           http://localhost:8000/docs")
    print()
    print("📝 Test with curl:")
    print('   curl -X POST "http://localhost:8000/recommendations/activities?stream=true" \\')
    print('     -H "Content-Type: application/json" \\')
    print('     -d \'{"destination": "Washington DC", "activities": "hiking", '
          '"travelDistance": "50", "distanceUnit": "miles"}\'')
    print()
    print("=" * 60)
    print("Press Ctrl+C to stop")
    print("=" * 60)
    print()

    uvicorn.run(
        "vacaition.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
