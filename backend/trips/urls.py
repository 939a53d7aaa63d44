from django.urls import path
from . import views

app_name = 'trips'

urlpatterns = [
    path('', views.trip_list, name='trip-list'),
    path('<int:trip_id>/', views.trip_detail, name='trip-detail'),
]
